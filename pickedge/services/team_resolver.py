"""
Team-name resolution for free-text predictions.

Two jobs live here:

1. **Canonical lookup** (:func:`canonical_team_name`, :func:`team_slug`):
   maps any known spelling of an NFL team ("Browns", "CLE", "Cleveland
   Browns") to one canonical name.  Used at ingestion and by the duplicate
   detector.  Static alias table first, rapidfuzz only as the fallback.

2. **Side resolution** (:func:`resolve_side`, :func:`resolve_spread_side`,
   :func:`resolve_favorite_pick`, :func:`resolve_total_side`): reads a
   prediction sentence such as "Chiefs win a close one" and decides which
   side it backs.  Every resolver is a pure function returning a tri-state
   enum; ``UNKNOWN`` is a normal value meaning "do not grade this market",
   never an exception.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import TYPE_CHECKING, Optional

from rapidfuzz import fuzz, process

from pickedge.core.engine_config import DEFAULT_FUZZY_SCORE_CUTOFF

if TYPE_CHECKING:
    from pickedge.schemas import GameInfo

logger = logging.getLogger(__name__)


class Side(str, Enum):
    HOME = "home"
    AWAY = "away"
    UNKNOWN = "unknown"


class SpreadPick(str, Enum):
    FAVORITE = "favorite"
    UNDERDOG = "underdog"
    UNKNOWN = "unknown"


class TotalSide(str, Enum):
    OVER = "over"
    UNDER = "under"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Canonical names
# ---------------------------------------------------------------------------

# Canonical name -> stable slug used in game identity keys.
TEAM_SLUGS: dict[str, str] = {
    "Arizona Cardinals": "azcardinals",
    "Atlanta Falcons": "atlfalcons",
    "Baltimore Ravens": "balravens",
    "Buffalo Bills": "bufbills",
    "Carolina Panthers": "carpanthers",
    "Chicago Bears": "chibears",
    "Cincinnati Bengals": "cinbengals",
    "Cleveland Browns": "clebrowns",
    "Dallas Cowboys": "dalcowboys",
    "Denver Broncos": "denbroncos",
    "Detroit Lions": "detlions",
    "Green Bay Packers": "gbpackers",
    "Houston Texans": "houtexans",
    "Indianapolis Colts": "indcolts",
    "Jacksonville Jaguars": "jaxjags",
    "Kansas City Chiefs": "kcchiefs",
    "Las Vegas Raiders": "lvraiders",
    "Los Angeles Chargers": "lachargers",
    "Los Angeles Rams": "larams",
    "Miami Dolphins": "miadolphins",
    "Minnesota Vikings": "minvikings",
    "New England Patriots": "nepats",
    "New Orleans Saints": "nosaints",
    "New York Giants": "nygiants",
    "New York Jets": "nyjets",
    "Philadelphia Eagles": "phieagles",
    "Pittsburgh Steelers": "pitsteelers",
    "San Francisco 49ers": "sf49ers",
    "Seattle Seahawks": "seaseahawks",
    "Tampa Bay Buccaneers": "tbbucs",
    "Tennessee Titans": "tentitans",
    "Washington Commanders": "wascommanders",
}

CANONICAL_TEAM_NAMES: list[str] = list(TEAM_SLUGS)

# Lower-cased alias -> canonical name.  Full names, unambiguous cities,
# nicknames, common short forms and sportsbook abbreviations.
TEAM_ALIASES: dict[str, str] = {
    # Cities (only those owning a single franchise)
    "arizona": "Arizona Cardinals",
    "atlanta": "Atlanta Falcons",
    "baltimore": "Baltimore Ravens",
    "buffalo": "Buffalo Bills",
    "carolina": "Carolina Panthers",
    "chicago": "Chicago Bears",
    "cincinnati": "Cincinnati Bengals",
    "cleveland": "Cleveland Browns",
    "dallas": "Dallas Cowboys",
    "denver": "Denver Broncos",
    "detroit": "Detroit Lions",
    "green bay": "Green Bay Packers",
    "houston": "Houston Texans",
    "indianapolis": "Indianapolis Colts",
    "jacksonville": "Jacksonville Jaguars",
    "kansas city": "Kansas City Chiefs",
    "las vegas": "Las Vegas Raiders",
    "oakland": "Las Vegas Raiders",
    "miami": "Miami Dolphins",
    "minnesota": "Minnesota Vikings",
    "new england": "New England Patriots",
    "new orleans": "New Orleans Saints",
    "philadelphia": "Philadelphia Eagles",
    "pittsburgh": "Pittsburgh Steelers",
    "san francisco": "San Francisco 49ers",
    "seattle": "Seattle Seahawks",
    "tampa bay": "Tampa Bay Buccaneers",
    "tampa": "Tampa Bay Buccaneers",
    "tennessee": "Tennessee Titans",
    "washington": "Washington Commanders",

    # Nicknames
    "cardinals": "Arizona Cardinals",
    "falcons": "Atlanta Falcons",
    "ravens": "Baltimore Ravens",
    "bills": "Buffalo Bills",
    "panthers": "Carolina Panthers",
    "bears": "Chicago Bears",
    "bengals": "Cincinnati Bengals",
    "browns": "Cleveland Browns",
    "cowboys": "Dallas Cowboys",
    "broncos": "Denver Broncos",
    "lions": "Detroit Lions",
    "packers": "Green Bay Packers",
    "texans": "Houston Texans",
    "colts": "Indianapolis Colts",
    "jaguars": "Jacksonville Jaguars",
    "jags": "Jacksonville Jaguars",
    "chiefs": "Kansas City Chiefs",
    "raiders": "Las Vegas Raiders",
    "chargers": "Los Angeles Chargers",
    "rams": "Los Angeles Rams",
    "dolphins": "Miami Dolphins",
    "vikings": "Minnesota Vikings",
    "patriots": "New England Patriots",
    "pats": "New England Patriots",
    "saints": "New Orleans Saints",
    "giants": "New York Giants",
    "jets": "New York Jets",
    "eagles": "Philadelphia Eagles",
    "steelers": "Pittsburgh Steelers",
    "49ers": "San Francisco 49ers",
    "niners": "San Francisco 49ers",
    "seahawks": "Seattle Seahawks",
    "buccaneers": "Tampa Bay Buccaneers",
    "bucs": "Tampa Bay Buccaneers",
    "titans": "Tennessee Titans",
    "commanders": "Washington Commanders",

    # Sportsbook abbreviations
    "ari": "Arizona Cardinals",
    "atl": "Atlanta Falcons",
    "bal": "Baltimore Ravens",
    "buf": "Buffalo Bills",
    "car": "Carolina Panthers",
    "chi": "Chicago Bears",
    "cin": "Cincinnati Bengals",
    "cle": "Cleveland Browns",
    "dal": "Dallas Cowboys",
    "den": "Denver Broncos",
    "det": "Detroit Lions",
    "gb": "Green Bay Packers",
    "hou": "Houston Texans",
    "ind": "Indianapolis Colts",
    "jax": "Jacksonville Jaguars",
    "kc": "Kansas City Chiefs",
    "lv": "Las Vegas Raiders",
    "lac": "Los Angeles Chargers",
    "lar": "Los Angeles Rams",
    "mia": "Miami Dolphins",
    "min": "Minnesota Vikings",
    "ne": "New England Patriots",
    "no": "New Orleans Saints",
    "nyg": "New York Giants",
    "nyj": "New York Jets",
    "phi": "Philadelphia Eagles",
    "pit": "Pittsburgh Steelers",
    "sf": "San Francisco 49ers",
    "sea": "Seattle Seahawks",
    "tb": "Tampa Bay Buccaneers",
    "ten": "Tennessee Titans",
    "was": "Washington Commanders",
    "wsh": "Washington Commanders",
    "ny giants": "New York Giants",
    "ny jets": "New York Jets",
    "la rams": "Los Angeles Rams",
    "la chargers": "Los Angeles Chargers",

    # Former names still present in old rows
    "washington football team": "Washington Commanders",
    "oakland raiders": "Las Vegas Raiders",
    "san diego chargers": "Los Angeles Chargers",
    "st. louis rams": "Los Angeles Rams",
}
TEAM_ALIASES.update({name.lower(): name for name in CANONICAL_TEAM_NAMES})

# Cities shared by two franchises.  Never resolved to a single team.
AMBIGUOUS_CITIES: frozenset[str] = frozenset({"new york", "los angeles", "la", "ny"})

# Two-word city prefixes; everything else is a one-word city.
TWO_WORD_CITIES: frozenset[str] = frozenset({
    "new england", "new york", "new orleans", "los angeles", "las vegas",
    "san francisco", "tampa bay", "green bay", "kansas city",
})

#: Shorter city/nickname tokens are too likely to appear inside other words.
MIN_TOKEN_LENGTH = 3


def canonical_team_name(
    name: Optional[str],
    score_cutoff: int = DEFAULT_FUZZY_SCORE_CUTOFF,
) -> Optional[str]:
    """
    Resolve any spelling of a team to its canonical name.

    Strategy:
      1. Exact alias lookup (case-insensitive, trimmed).
      2. Ambiguous city ("New York", "Los Angeles") → None.
      3. rapidfuzz token_set_ratio against the canonical list.

    Returns:
        The canonical name, or None if no confident match is found.
    """
    if not name:
        return None
    key = " ".join(name.lower().split())
    if not key:
        return None

    if key in TEAM_ALIASES:
        return TEAM_ALIASES[key]

    if key in AMBIGUOUS_CITIES:
        logger.debug("Ambiguous city '%s' not resolved to a team", name)
        return None

    result = process.extractOne(
        key,
        CANONICAL_TEAM_NAMES,
        scorer=fuzz.token_set_ratio,
        processor=str.lower,
        score_cutoff=score_cutoff,
    )
    if result and _is_shared_city_match(key, result[0]):
        logger.warning("Shared-city guard blocked fuzzy match '%s' → '%s'", name, result[0])
        result = None

    if result:
        logger.debug("Fuzzy matched '%s' to '%s' with score %.1f", name, result[0], result[1])
        return result[0]
    return None


def _is_shared_city_match(query: str, matched: str) -> bool:
    """
    True when a fuzzy hit only shares a two-team city with the query
    ("new york football" must not land on the Giants).
    """
    m = matched.lower()
    for city in AMBIGUOUS_CITIES:
        if m.startswith(city + " ") and city in query:
            nickname = m[len(city) + 1:]
            if nickname not in query:
                return True
    return False


def team_slug(name: Optional[str]) -> str:
    """
    Stable identity slug for a team name.

    Uses the static alias table only (no fuzzy step) so that the slug of a
    given string never changes between runs.  Unknown names fall back to
    their trimmed, lower-cased form.
    """
    normalized = " ".join((name or "").lower().split())
    canonical = TEAM_ALIASES.get(normalized)
    if canonical:
        return TEAM_SLUGS[canonical]
    return normalized


# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------

def _split_team(name: str) -> tuple[str, str]:
    """Return (city, nickname) for a full team name, lower-cased."""
    parts = name.lower().split()
    if not parts:
        return "", ""
    city = parts[0]
    if len(parts) >= 3 and " ".join(parts[:2]) in TWO_WORD_CITIES:
        city = " ".join(parts[:2])
    return city, parts[-1]


def _contains_token(text: str, token: str) -> bool:
    if len(token) <= MIN_TOKEN_LENGTH:
        return False
    return re.search(rf"(?<![\w]){re.escape(token)}(?![\w])", text) is not None


def _mentions_full_name(text: str, team: str) -> bool:
    full = team.lower().strip()
    if full and full in text:
        return True
    canonical = canonical_team_name(team)
    return bool(canonical) and canonical.lower() in text


def _mentions_tokens(text: str, team: str) -> bool:
    names = {team}
    canonical = canonical_team_name(team)
    if canonical:
        names.add(canonical)
    for name in names:
        city, nickname = _split_team(name)
        if _contains_token(text, city) or _contains_token(text, nickname):
            return True
    return False


def _pick_one(home_hit: bool, away_hit: bool) -> Side:
    if home_hit and not away_hit:
        return Side.HOME
    if away_hit and not home_hit:
        return Side.AWAY
    return Side.UNKNOWN


# ---------------------------------------------------------------------------
# Side resolution
# ---------------------------------------------------------------------------

def resolve_side(text: Optional[str], home_team: str, away_team: str) -> Side:
    """
    Which team does ``text`` back?

    1. Full-name containment ("Kansas City Chiefs win").
    2. If that is absent or names both teams: city / nickname tokens longer
       than three characters, with two-word cities kept together.

    Returns ``Side.UNKNOWN`` when neither or both teams are mentioned.
    """
    if not text:
        return Side.UNKNOWN
    lowered = text.lower()

    side = _pick_one(
        _mentions_full_name(lowered, home_team),
        _mentions_full_name(lowered, away_team),
    )
    if side is not Side.UNKNOWN:
        return side

    return _pick_one(
        _mentions_tokens(lowered, home_team),
        _mentions_tokens(lowered, away_team),
    )


_SPREAD_LITERAL = re.compile(r"(?<![\w.])([+-]\d{1,2}(?:\.\d+)?)(?!\d)(?!\.\d)")


def parse_spread_literal(text: Optional[str]) -> Optional[float]:
    """First signed spread number in ``text`` ("Browns +3.5" → 3.5), else None.

    Signed numbers with three or more digits are prices (-110), not spreads.
    """
    if not text:
        return None
    match = _SPREAD_LITERAL.search(text)
    return float(match.group(1)) if match else None


def resolve_favorite_pick(
    text: Optional[str],
    favorite_team: Optional[str],
    underdog_team: Optional[str] = None,
) -> SpreadPick:
    """
    Does a spread prediction back the favourite or the underdog?

    Team tokens decide first.  When no team (or both) is mentioned the sign
    of an embedded spread literal decides: "-3.5" backs the favourite,
    "+3.5" the underdog.
    """
    if not text:
        return SpreadPick.UNKNOWN
    lowered = text.lower()

    fav_hit = bool(favorite_team) and (
        _mentions_full_name(lowered, favorite_team) or _mentions_tokens(lowered, favorite_team)
    )
    dog_hit = bool(underdog_team) and (
        _mentions_full_name(lowered, underdog_team) or _mentions_tokens(lowered, underdog_team)
    )
    if fav_hit and not dog_hit:
        return SpreadPick.FAVORITE
    if dog_hit and not fav_hit:
        return SpreadPick.UNDERDOG

    literal = parse_spread_literal(text)
    if literal is None or literal == 0:
        return SpreadPick.UNKNOWN
    return SpreadPick.FAVORITE if literal < 0 else SpreadPick.UNDERDOG


def favorite_side(game: "GameInfo") -> Side:
    """
    Which side is the favourite?

    Priority: explicit ``favorite_is_home`` flag > ``favorite_team`` name >
    sign of the home spread > lower moneyline price.
    """
    if game.favorite_is_home is not None:
        return Side.HOME if game.favorite_is_home else Side.AWAY

    if game.favorite_team:
        fav = canonical_team_name(game.favorite_team) or game.favorite_team
        home = canonical_team_name(game.home_team) or game.home_team
        away = canonical_team_name(game.away_team) or game.away_team
        if fav.lower() == home.lower():
            return Side.HOME
        if fav.lower() == away.lower():
            return Side.AWAY

    if game.spread:
        return Side.HOME if game.spread < 0 else Side.AWAY

    if game.home_ml_odds and game.away_ml_odds and game.home_ml_odds != game.away_ml_odds:
        return Side.HOME if game.home_ml_odds < game.away_ml_odds else Side.AWAY

    return Side.UNKNOWN


def spread_pick_for_side(side: Side, game: "GameInfo") -> SpreadPick:
    """Translate a home/away side into favourite/underdog for ``game``."""
    fav = favorite_side(game)
    if side is Side.UNKNOWN or fav is Side.UNKNOWN:
        return SpreadPick.UNKNOWN
    return SpreadPick.FAVORITE if side is fav else SpreadPick.UNDERDOG


def resolve_spread_side(text: Optional[str], game: "GameInfo") -> Side:
    """
    Home/away side backed by a spread prediction.

    Team tokens first; otherwise the favourite/underdog reading of the
    text (spread literal sign) mapped through the game's favourite.
    """
    side = resolve_side(text, game.home_team, game.away_team)
    if side is not Side.UNKNOWN:
        return side

    fav = favorite_side(game)
    if fav is Side.UNKNOWN:
        return Side.UNKNOWN
    dog = Side.AWAY if fav is Side.HOME else Side.HOME

    fav_name = game.home_team if fav is Side.HOME else game.away_team
    dog_name = game.away_team if fav is Side.HOME else game.home_team
    pick = resolve_favorite_pick(text, fav_name, dog_name)
    if pick is SpreadPick.FAVORITE:
        return fav
    if pick is SpreadPick.UNDERDOG:
        return dog
    return Side.UNKNOWN


_OVER = re.compile(r"\bover\b|\bo\s?\d+(?:\.\d+)?\b")
_UNDER = re.compile(r"\bunder\b|\bu\s?\d+(?:\.\d+)?\b")
OVER_PHRASES: tuple[str, ...] = ("high scoring", "high-scoring", "shootout")
UNDER_PHRASES: tuple[str, ...] = ("low scoring", "low-scoring", "defensive", "ugly")


def resolve_total_side(text: Optional[str]) -> TotalSide:
    """
    Over or under?

    Explicit tokens ("over", "under", "o44.5", "u 41") win.  Without them,
    descriptive phrases: "high scoring"/"shootout" read as over,
    "low scoring"/"defensive"/"ugly" as under.  Mixed signals → UNKNOWN.
    """
    if not text:
        return TotalSide.UNKNOWN
    lowered = text.lower()

    over = _OVER.search(lowered) is not None
    under = _UNDER.search(lowered) is not None
    if over or under:
        if over and under:
            return TotalSide.UNKNOWN
        return TotalSide.OVER if over else TotalSide.UNDER

    over = any(p in lowered for p in OVER_PHRASES)
    under = any(p in lowered for p in UNDER_PHRASES)
    if over and not under:
        return TotalSide.OVER
    if under and not over:
        return TotalSide.UNDER
    return TotalSide.UNKNOWN


def resolve_pick_total_side(ou_prediction: Optional[str], prediction: Optional[str]) -> TotalSide:
    """Over/under from the totals text, else from the moneyline text."""
    side = resolve_total_side(ou_prediction)
    if side is TotalSide.UNKNOWN:
        side = resolve_total_side(prediction)
    return side
