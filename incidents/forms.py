"""Validation for incident submissions and admin settings."""
import re

from django import forms
from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.utils.html import strip_tags

from .models import Incident

LOCATIONS = ["Classroom", "Yard", "Specialist", "Transition", "Online"]

UUID_RE = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"

# form field -> JSON key on the wire
WIRE_NAMES = {
    "type": "type",
    "student_id": "studentId",
    "student_name": "studentName",
    "level": "level",
    "category": "category",
    "location": "location",
    "action_taken": "actionTaken",
    "note": "note",
    "class_code": "classCode",
    "device": "device",
    "uuid": "uuid",
    "timestamp": "timestamp",
}

REQUIRED_FIELDS = ("student_id", "student_name", "level", "category", "location")
FREE_TEXT_FIELDS = (
    "student_id", "student_name", "level", "category", "location",
    "action_taken", "note", "class_code", "device", "uuid", "timestamp",
)

# Also catches unterminated tags, which strip_tags leaves in place.
TAG_FRAGMENT_RE = re.compile(r"<[^>]*>?")


def sanitize(value):
    """Strip HTML tags and surrounding whitespace; inner text is kept as-is."""
    if value is None:
        return ""
    return TAG_FRAGMENT_RE.sub("", strip_tags(str(value))).strip()


class StringOnlyMixin:
    """Refuse JSON numbers, booleans, lists and objects instead of coercing them."""

    def to_python(self, value):
        if value is not None and not isinstance(value, str):
            raise ValidationError("Expected a string.", code="invalid")
        return super().to_python(value)


class StrictCharField(StringOnlyMixin, forms.CharField):
    pass


class StrictChoiceField(StringOnlyMixin, forms.ChoiceField):
    pass


class IncidentForm(forms.Form):
    type = StrictChoiceField(choices=Incident.Type.choices, required=False)
    student_id = StrictCharField(max_length=64)
    student_name = StrictCharField(max_length=120)
    level = StrictCharField(max_length=32)
    category = StrictCharField(max_length=64)
    location = StrictChoiceField(choices=[(loc, loc) for loc in LOCATIONS])
    action_taken = StrictCharField(max_length=120, required=False)
    note = StrictCharField(max_length=600, required=False)
    class_code = StrictCharField(max_length=32, required=False)
    device = StrictCharField(max_length=200, required=False)
    uuid = StrictCharField(
        required=False,
        validators=[RegexValidator(UUID_RE, message="Invalid uuid")],
    )
    timestamp = StrictCharField(max_length=40, required=False)

    @classmethod
    def from_payload(cls, payload):
        data = {field: payload.get(wire) for field, wire in WIRE_NAMES.items()}
        return cls(data={k: v for k, v in data.items() if v is not None})

    def first_error(self):
        """The first validation issue, prefixed with the JSON key it concerns."""
        for field in self.fields:
            if field in self.errors:
                return f"{WIRE_NAMES[field]}: {self.errors[field][0]}"
        if self.non_field_errors():
            return self.non_field_errors()[0]
        return "Invalid request body."

    def sanitized(self):
        """Cleaned data with every free-text field tag-stripped and trimmed."""
        data = dict(self.cleaned_data)
        for field in FREE_TEXT_FIELDS:
            data[field] = sanitize(data.get(field))
        data["type"] = data.get("type") or Incident.Type.INCIDENT
        return data


class RetentionForm(forms.Form):
    days = forms.IntegerField(min_value=1, max_value=3650)
