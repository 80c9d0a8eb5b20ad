from enum import Enum


class GameType(str, Enum):
    LEAGUE = "Ligaspiel"
    CUP = "Pokalspiel"
    FRIENDLY = "Freundschaftsspiel"


class Gender(str, Enum):
    FEMALE = "weiblich"
    MALE = "männlich"
    MIXED = "gemischt"
    UNKNOWN = ""
