"""Domain entities package."""
from .face import BoundingBox, Face
from .person import Person, PersonDetails

__all__ = ["BoundingBox", "Face", "Person", "PersonDetails"]
