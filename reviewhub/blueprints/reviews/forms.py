from flask_wtf import FlaskForm
from wtforms import FloatField, SelectField, StringField, TextAreaField
from wtforms.validators import Length, Optional

from ...models.review import REVIEW_STATUSES


class ReviewForm(FlaskForm):
    class Meta:
        csrf = False

    status = SelectField("Status", choices=[(s, s) for s in REVIEW_STATUSES], default="draft")
    score = FloatField("Score", validators=[Optional()])
    comments = TextAreaField("Comments", validators=[Optional()])
    decision = StringField("Decision", validators=[Optional(), Length(max=50)])
