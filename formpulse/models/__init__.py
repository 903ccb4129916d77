from formpulse.models.form import Form
from formpulse.models.form_response import FormResponse
from formpulse.models.organization import Organization
from formpulse.models.user_profile import UserProfile

__all__ = [
    "Form",
    "FormResponse",
    "Organization",
    "UserProfile",
]
