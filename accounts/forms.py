"""Account management forms for the admin JSON API."""
from django import forms

from .models import Teacher

ASSIGNABLE_ROLES = [
    (Teacher.Role.TEACHER, "Teacher"),
    (Teacher.Role.ADMIN, "Admin"),
]

# form field -> JSON key
WIRE_NAMES = {
    "email": "email",
    "display_name": "displayName",
    "role": "role",
    "is_specialist": "isSpecialist",
    "is_active": "active",
}


def first_error(form):
    for field in form.fields:
        if field in form.errors:
            return f"{WIRE_NAMES.get(field, field)}: {form.errors[field][0]}"
    if form.non_field_errors():
        return form.non_field_errors()[0]
    return "Invalid payload."


class TeacherCreateForm(forms.ModelForm):
    role = forms.ChoiceField(choices=ASSIGNABLE_ROLES, required=False)

    class Meta:
        model = Teacher
        fields = ["email", "display_name", "role", "is_specialist"]

    @classmethod
    def from_payload(cls, payload):
        return cls(data={
            "email": (payload.get("email") or "").strip().lower(),
            "display_name": (payload.get("displayName") or "").strip(),
            "role": payload.get("role") or Teacher.Role.TEACHER,
            "is_specialist": bool(payload.get("isSpecialist")),
        })

    def save(self, organization, commit=True):
        teacher = super().save(commit=False)
        teacher.organization = organization
        teacher.set_unusable_password()
        if commit:
            teacher.save()
        return teacher


class TeacherUpdateForm(forms.ModelForm):
    """PATCH semantics: keys missing from the payload keep their stored value."""

    role = forms.ChoiceField(choices=ASSIGNABLE_ROLES)

    class Meta:
        model = Teacher
        fields = ["display_name", "role", "is_specialist", "is_active"]

    @classmethod
    def from_payload(cls, payload, instance):
        data = {field: getattr(instance, field) for field in cls._meta.fields}
        for field in cls._meta.fields:
            wire = WIRE_NAMES[field]
            if wire in payload and payload[wire] is not None:
                data[field] = payload[wire]
        if isinstance(data["display_name"], str):
            data["display_name"] = data["display_name"].strip()
        return cls(data=data, instance=instance)
