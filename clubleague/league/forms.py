"""Forms for the league blueprint."""

from flask_wtf import FlaskForm
from wtforms import IntegerField, SelectField, StringField
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional

from clubleague.core.constants import MEMBER_ROLES, ROLE_MEMBER, ROLE_OWNER

FORMAT_CHOICES = [
    ("normal_league", "Normal League"),
    ("single_elimination", "Single Elimination"),
    ("double_elimination", "Double Elimination"),
    ("round_robin", "Round Robin"),
]


class LeagueForm(FlaskForm):
    """Form for creating a league."""

    name = StringField("League Name", validators=[DataRequired(), Length(max=80)])
    sport = StringField("Sport", validators=[DataRequired(), Length(max=40)])
    tournament_format = SelectField(
        "Tournament Format",
        choices=FORMAT_CHOICES,
        validators=[Optional()],
        validate_choice=False,
    )
    max_participants = IntegerField(
        "Max Participants", validators=[Optional(), NumberRange(min=2)]
    )
    number_of_rounds = IntegerField(
        "Number of Rounds", validators=[Optional(), NumberRange(min=1)]
    )


class LeagueUpdateForm(FlaskForm):
    """Form for editing a league. Omitted fields are left unchanged."""

    name = StringField("League Name", validators=[Optional(), Length(max=80)])
    sport = StringField("Sport", validators=[Optional(), Length(max=40)])
    tournament_format = SelectField(
        "Tournament Format",
        choices=FORMAT_CHOICES,
        validators=[Optional()],
        validate_choice=False,
    )
    max_participants = IntegerField(
        "Max Participants", validators=[Optional(), NumberRange(min=2)]
    )
    number_of_rounds = IntegerField(
        "Number of Rounds", validators=[Optional(), NumberRange(min=1)]
    )


class AddMemberForm(FlaskForm):
    """Form for adding a member to a league by email."""

    email = StringField("Email", validators=[DataRequired(), Email()])
    role = SelectField(
        "Role",
        choices=[(role, role.title()) for role in MEMBER_ROLES if role != ROLE_OWNER],
        default=ROLE_MEMBER,
    )


class JoinByCodeForm(FlaskForm):
    """Form for joining a league with its invite code."""

    invite_code = StringField("Invite Code", validators=[DataRequired()])
