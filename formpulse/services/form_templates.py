"""Built-in form templates and their instantiation into concrete fields."""

import uuid

from pydantic import BaseModel, Field

from formpulse.schemas.fields import FieldType, SurveyField, ValidationRule, VisibilityOperator, VisibilityRule


class TemplateVisibility(BaseModel):
    depends_on_key: str
    operator: VisibilityOperator = "equals"
    value: str | None = None


class TemplateField(BaseModel):
    """A field inside a template, addressed by a stable key instead of an id."""

    key: str
    label: str
    type: FieldType
    required: bool = False
    options: list[str] | None = None
    ai_enabled: bool = False
    visibility: TemplateVisibility | None = None
    validation: ValidationRule | None = None


class FormTemplate(BaseModel):
    id: str
    name: str
    summary: str
    title: str
    description: str
    fields: list[TemplateField] = Field(default_factory=list)


TEMPLATES: list[FormTemplate] = [
    FormTemplate(
        id="visit-intake",
        name="Pre-visit intake",
        summary="For first consultations or before a booking.",
        title="Pre-visit intake form",
        description="Tell us the purpose of your visit and your preferred date.",
        fields=[
            TemplateField(
                key="purpose",
                label="Purpose of visit",
                type="single_select",
                required=True,
                options=["Consultation", "Quote", "Purchase", "Maintenance", "Other"],
            ),
            TemplateField(key="visit_date", label="Preferred visit date", type="date", required=True),
            TemplateField(
                key="contact_name",
                label="Your name",
                type="short_text",
                required=True,
                validation=ValidationRule(min_length=2),
            ),
            TemplateField(key="contact_email", label="Email address", type="short_text", required=True),
            TemplateField(
                key="budget",
                label="Approximate budget",
                type="single_select",
                options=["Under $300", "Under $1,000", "Under $3,000", "$3,000 or more", "Undecided"],
            ),
            TemplateField(
                key="others",
                label="Other requests",
                type="long_text",
                ai_enabled=True,
                visibility=TemplateVisibility(depends_on_key="purpose", operator="equals", value="Other"),
            ),
        ],
    ),
    FormTemplate(
        id="estimate-b2b",
        name="B2B quote request",
        summary="For quote enquiries from businesses.",
        title="Business quote request form",
        description="Collect everything needed for an internal review in one go.",
        fields=[
            TemplateField(key="company", label="Company name", type="short_text", required=True),
            TemplateField(key="person", label="Contact person", type="short_text", required=True),
            TemplateField(key="email", label="Contact email", type="short_text", required=True),
            TemplateField(key="phone", label="Phone number", type="short_text"),
            TemplateField(
                key="category",
                label="Category",
                type="single_select",
                required=True,
                options=["Point of sale", "E-commerce integration", "Inventory", "Reservations", "Other"],
            ),
            TemplateField(
                key="volume",
                label="Expected volume / scale",
                type="short_text",
                validation=ValidationRule(max_length=40),
            ),
            TemplateField(key="deadline", label="Desired delivery date", type="date"),
            TemplateField(
                key="detail",
                label="Detailed requirements",
                type="long_text",
                required=True,
                ai_enabled=True,
                validation=ValidationRule(min_length=10),
            ),
        ],
    ),
    FormTemplate(
        id="event",
        name="Event registration",
        summary="For info sessions and in-store events.",
        title="Event registration form",
        description="Know attendance format and headcount ahead of time.",
        fields=[
            TemplateField(key="org", label="Organization (company or store)", type="short_text"),
            TemplateField(key="name", label="Your name", type="short_text", required=True),
            TemplateField(key="mail", label="Email address", type="short_text", required=True),
            TemplateField(
                key="attendance",
                label="Attendance",
                type="single_select",
                required=True,
                options=["In person", "Online"],
            ),
            TemplateField(
                key="headcount",
                label="Number of attendees",
                type="short_text",
                required=True,
                validation=ValidationRule(max_length=3),
            ),
            TemplateField(
                key="diet",
                label="Dietary restrictions or other needs",
                type="long_text",
                ai_enabled=True,
                visibility=TemplateVisibility(depends_on_key="attendance", operator="equals", value="In person"),
            ),
            TemplateField(key="consent", label="I agree to the event terms", type="checkbox", required=True),
        ],
    ),
    FormTemplate(
        id="csat",
        name="Satisfaction survey",
        summary="For service improvement and customer follow-up.",
        title="Customer satisfaction survey",
        description="Measure satisfaction and collect improvement ideas.",
        fields=[
            TemplateField(
                key="satisfaction",
                label="Overall satisfaction",
                type="single_select",
                required=True,
                options=["Very satisfied", "Satisfied", "Neutral", "Somewhat dissatisfied", "Dissatisfied"],
            ),
            TemplateField(
                key="recommend",
                label="Would you recommend us to a friend?",
                type="single_select",
                required=True,
                options=["Definitely", "Probably", "Not sure", "No"],
            ),
            TemplateField(key="good", label="What did you like?", type="long_text", ai_enabled=True),
            TemplateField(key="improve", label="What should we improve?", type="long_text", ai_enabled=True),
        ],
    ),
]


def get_template(template_id: str) -> FormTemplate | None:
    return next((t for t in TEMPLATES if t.id == template_id), None)


def build_template_fields(template: FormTemplate) -> list[SurveyField]:
    """Give every template field a fresh id and re-link visibility rules."""
    id_map = {field.key: str(uuid.uuid4()) for field in template.fields}
    fields = []
    for item in template.fields:
        visibility = None
        if item.visibility is not None:
            visibility = VisibilityRule(
                depends_on_id=id_map[item.visibility.depends_on_key],
                operator=item.visibility.operator,
                value=item.visibility.value,
            )
        fields.append(
            SurveyField(
                id=id_map[item.key],
                label=item.label,
                type=item.type,
                required=item.required,
                options=item.options,
                ai_enabled=item.ai_enabled,
                visibility=visibility,
                validation=item.validation,
            )
        )
    return fields
