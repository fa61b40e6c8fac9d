"""Face recall: enroll the people you meet and recognize them later."""

__version__ = "0.1.0"
