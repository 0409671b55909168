"""Normalized, fully defaulted entity records for the record views.

Raw API payloads are duck-typed; ``recordview.services.record_normalizer``
turns them into these models in one place so render code never needs
fallback chains.
"""

from typing import Any, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field

CUSTOM_FIELD_PREFIX = "custom:"


def lookup_custom_value(
    values: Mapping[str, Any],
    key: str,
    aliases: Mapping[str, Sequence[str]] | None = None,
) -> Any:
    """Custom value stored under ``key`` or any alias of the same definition."""
    if key in values:
        return values[key]
    for alias in (aliases or {}).get(key, ()):
        if alias in values:
            return values[alias]
    return None


class NormalizedRecord(BaseModel):
    """Shared behavior: lookup of standard and custom values by field key."""

    model_config = ConfigDict(extra="ignore")

    id: str
    custom_fields: dict[str, Any] = Field(default_factory=dict)

    def field_value(self, key: str, aliases: Mapping[str, Sequence[str]] | None = None) -> Any:
        """Value for a standard key, a ``custom:<key>`` sentinel, or a bare custom key.

        Nested summaries are addressed with dots (``organization.name``).
        ``aliases`` (see ``build_alias_index``) lets a custom key find values
        stored under another name of the same definition.
        """
        if key.startswith(CUSTOM_FIELD_PREFIX):
            return lookup_custom_value(self.custom_fields, key[len(CUSTOM_FIELD_PREFIX):], aliases)
        if "." in key:
            head, _, rest = key.partition(".")
            if head in type(self).model_fields:
                value: Any = getattr(self, head)
                for part in rest.split("."):
                    value = getattr(value, part, None)
                return value
        if key != "custom_fields" and key in type(self).model_fields:
            return getattr(self, key)
        return lookup_custom_value(self.custom_fields, key, aliases)

    @property
    def display_title(self) -> str:
        return self.id


class OrganizationSummary(BaseModel):
    name: str = "Not specified"
    status: str | None = None
    phone: str = "Not provided"
    website: str = "Not provided"

    @property
    def website_url(self) -> str | None:
        """Clickable URL, or None when no website is on file."""
        if not self.website or self.website == "Not provided":
            return None
        if self.website.startswith("http"):
            return self.website
        return f"https://{self.website}"


class ContactSummary(BaseModel):
    name: str = "Not specified"
    phone: str = "Phone not available"
    email: str = "Email not available"


class JobRecord(NormalizedRecord):
    title: str = "Untitled Job"
    category: str = "Uncategorized"
    status: str = "Unknown"
    priority: str = "-"
    employment_type: str = "Not specified"
    start_date: str = "Not specified"
    worksite: str = "Not specified"
    remote_option: str = "Not specified"
    date_added: str = "Unknown"
    job_board_status: str = "Not Posted"
    owner: str = "Not assigned"
    organization: OrganizationSummary = Field(default_factory=OrganizationSummary)
    hiring_manager: ContactSummary = Field(default_factory=ContactSummary)
    description: str = "No description provided"
    benefits: list[str] = Field(default_factory=list)
    salary_range: str = "Not specified"
    required_skills: str = ""
    location: str = "On-site"
    applicants: int = 0

    @property
    def display_title(self) -> str:
        return self.title


class HiringManagerRecord(NormalizedRecord):
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    title: str = "Not specified"
    phone: str = "(Not provided)"
    mobile_phone: str = "(Not provided)"
    direct_line: str = "(Not provided)"
    email: str = "(Not provided)"
    email2: str = ""
    organization: OrganizationSummary = Field(default_factory=OrganizationSummary)
    status: str = "Active"
    department: str = "Not specified"
    reports_to: str = "Not specified"
    owner: str = "Not assigned"
    secondary_owners: str = "None"
    linkedin_url: str = "Not provided"
    date_added: str = "Unknown"
    address: str = "No address provided"

    @property
    def display_title(self) -> str:
        return self.full_name


class TaskRecord(NormalizedRecord):
    title: str = "Untitled Task"
    description: str = "No description provided"
    is_completed: bool = False
    due_date: str = "Not set"
    due_time: str = "Not set"
    due_date_time: str = "Not set"
    priority: str = "Medium"
    status: str = "Pending"
    owner: str = "Not assigned"
    assigned_to: str = "Not assigned"
    assigned_to_id: str | None = None
    job_seeker: str = "Not specified"
    job_seeker_id: str | None = None
    hiring_manager: str = "Not specified"
    hiring_manager_id: str | None = None
    job: str = "Not specified"
    job_id: str | None = None
    lead: str = "Not specified"
    lead_id: str | None = None
    placement: str = "Not specified"
    placement_id: str | None = None
    date_created: str = "Unknown"
    created_by: str = "Unknown"
    completed_at: str | None = None
    completed_by: str | None = None

    @property
    def display_title(self) -> str:
        return self.title


class JobSeekerRow(NormalizedRecord):
    full_name: str = "N/A"
    email: str = "N/A"
    phone: str = "N/A"
    status: str = "N/A"
    last_contact_date: str | None = None
    owner: str = "Unassigned"

    @property
    def display_title(self) -> str:
        return self.full_name


class LeadRecord(NormalizedRecord):
    first_name: str = ""
    last_name: str = ""
    full_name: str = "Unnamed Lead"
    email: str = "(Not provided)"
    phone: str = "(Not provided)"
    status: str = "New"
    organization_name: str = "Not specified"
    owner: str = "Not assigned"
    date_added: str = "Unknown"

    @property
    def display_title(self) -> str:
        return self.full_name


class PlacementSummary(NormalizedRecord):
    job_seeker: str = "Not specified"
    job_seeker_id: str | None = None
    job: str = "Not specified"
    job_id: str | None = None
    status: str = "Pending"
    start_date: str = "Not specified"
    owner: str = "Not assigned"

    @property
    def display_title(self) -> str:
        return f"{self.job_seeker} - {self.job}"
