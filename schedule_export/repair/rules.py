"""Ordered substitution rules for text damaged by a lost German letter.

The schedule export is occasionally produced with a broken encoding; every
umlaut or sharp s then arrives as the Unicode replacement character. Which
letter was lost cannot be recovered from the byte stream, so known words are
listed here explicitly. Rules are evaluated top to bottom, longer and more
specific patterns first, so a rule never sees text already rewritten by a
shorter one.
"""
from pathlib import Path
from typing import List, Tuple

from loguru import logger

MARKER = "\ufffd"

# Most frequent lost letter in this league's names (Weißbach, Straße, Groß...)
DEFAULT_REPLACEMENT = "ß"

Rule = Tuple[str, str]

REPAIR_RULES: Tuple[Rule, ...] = (
    # Places
    (f"Oberwei{MARKER}bach", "Oberweißbach"),
    (f"Th{MARKER}ringenliga", "Thüringenliga"),
    (f"Th{MARKER}ringen", "Thüringen"),
    (f"Th{MARKER}ringer", "Thüringer"),
    (f"Th{MARKER}r.", "Thür."),
    (f"K{MARKER}nitz", "Könitz"),
    (f"P{MARKER}{MARKER}neck", "Pößneck"),
    (f"P{MARKER}neck", "Pößneck"),
    (f"S{MARKER}mmerda", "Sömmerda"),
    (f"M{MARKER}hlhausen", "Mühlhausen"),
    (f"Gro{MARKER}breitenbach", "Großbreitenbach"),
    (f"Sch{MARKER}nbrunn", "Schönbrunn"),
    (f"Kahla-L{MARKER}bsch{MARKER}tz", "Kahla-Löbschütz"),
    (f"D{MARKER}rrberg", "Dörrberg"),
    (f"N{MARKER}rnberg", "Nürnberg"),
    (f"W{MARKER}rzburg", "Würzburg"),
    # Leagues and competitions
    (f"Landesklasse S{MARKER}d", "Landesklasse Süd"),
    (f"Bezirksliga Mitte/S{MARKER}d", "Bezirksliga Mitte/Süd"),
    (f"M{MARKER}nner", "Männer"),
    # Surnames
    (f"M{MARKER}ller", "Müller"),
    (f"Schr{MARKER}der", "Schröder"),
    (f"J{MARKER}rgen", "Jürgen"),
    (f"K{MARKER}hler", "Köhler"),
    (f"G{MARKER}nther", "Günther"),
    (f"Kr{MARKER}ger", "Krüger"),
    # Common words
    (f"Stra{MARKER}e", "Straße"),
    (f"f{MARKER}r", "für"),
    (f"Sch{MARKER}ler", "Schüler"),
    (f"{MARKER}ber", "über"),
    (f"Spielst{MARKER}tte", "Spielstätte"),
    (f"St{MARKER}dtische", "Städtische"),
)


def load_rules_file(path: Path) -> List[Rule]:
    """Reads extra rules from a ``pattern;replacement`` file.

    ``?`` in a pattern stands for the replacement character, so the file can
    be edited without typing U+FFFD. Blank lines and ``#`` comments are
    skipped; malformed lines are logged and ignored.
    """
    rules: List[Rule] = []
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            pattern, sep, replacement = line.partition(";")
            if not sep or not pattern:
                logger.warning(f"Ignoring malformed repair rule in {path}:{line_number}")
                continue
            rules.append((pattern.replace("?", MARKER), replacement))
    logger.info(f"Loaded {len(rules)} extra repair rules from {path}")
    return rules
