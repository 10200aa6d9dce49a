"""Tournament blueprint."""

from flask import Blueprint

bp = Blueprint("tournament", __name__, url_prefix="/leagues")

from . import routes  # noqa: E402, F401
from .models import Bracket, Match, MatchKey, Participant, Standing  # noqa: E402
from .services import TournamentService  # noqa: E402

__all__ = [
    "Bracket",
    "Match",
    "MatchKey",
    "Participant",
    "Standing",
    "TournamentService",
    "routes",
]
