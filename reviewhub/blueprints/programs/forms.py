from flask_wtf import FlaskForm
from wtforms import SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional

from ...services.program_status import ACTIONS


class StatusForm(FlaskForm):
    class Meta:
        csrf = False

    action = SelectField("Action", choices=[(a, a) for a in ACTIONS], validators=[DataRequired()])
    note = TextAreaField("Note", validators=[Optional()])


class PublishForm(FlaskForm):
    class Meta:
        csrf = False

    # only_unpublished and visibility are read from the raw payload
    acceptance_tag = StringField("Acceptance tag", validators=[Optional(), Length(max=80)])
    claim_deadline = StringField("Claim deadline", validators=[Optional()])
