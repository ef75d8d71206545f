# Importing the package registers every model on Base.metadata
from thingsapi.models.thing import Thing

__all__ = ["Thing"]
