from .person_store import PersonStore
