"""Forms for the tournament blueprint."""

from flask_wtf import FlaskForm
from wtforms import FloatField, StringField
from wtforms.validators import DataRequired, NumberRange, Optional


class MatchResultForm(FlaskForm):
    """Form for recording the outcome of a match."""

    winner_id = StringField("Winner", validators=[DataRequired()])
    player1_score = FloatField(
        "Player 1 Score", validators=[Optional(), NumberRange(min=0)]
    )
    player2_score = FloatField(
        "Player 2 Score", validators=[Optional(), NumberRange(min=0)]
    )


class AssignPlayersForm(FlaskForm):
    """Form for filling the empty slots of a later-round match."""

    player1_id = StringField("Player 1", validators=[Optional()])
    player2_id = StringField("Player 2", validators=[Optional()])
