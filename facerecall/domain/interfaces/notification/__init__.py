from .announcer import Announcer
