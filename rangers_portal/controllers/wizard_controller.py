"""Four-step application wizard.

The wizard owns a :class:`WizardState` and changes it only through the
transition methods registered in its dispatch table. Steps:

1. personal and organization details
2. topic / module choice and motivation
3. document staging (CV, recommendation letter, optional logo)
4. review and terms acceptance, then submission

Staged files stay in memory until :meth:`ApplicationWizard.submit` uploads
them one after another and creates the application record.
"""
import enum
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from rangers_portal.core.catalog import (
    TOPICS,
    get_topic,
    module_belongs_to_topic,
    module_choices,
    organization_type_label,
)
from rangers_portal.core.config import get_settings
from rangers_portal.core.debounce import Debouncer
from rangers_portal.core.ids import generate_application_id
from rangers_portal.core.local_store import DRAFT_KEY, LAST_APPLICATION_KEY, LocalStore
from rangers_portal.core.notifications import NotificationCenter
from rangers_portal.core.result import ErrorKind, Result
from rangers_portal.models.enums import ApplicationStatus, OrganizationType
from rangers_portal.services.data_service import DataService
from rangers_portal.services.storage import safe_filename

logger = logging.getLogger(__name__)

FIRST_STEP = 1
LAST_STEP = 4
MIN_MOTIVATION_LENGTH = 50

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[+]?[\d\s\-()]{10,}$")

FIELD_NAMES = ("full_name", "organization", "organization_type", "email", "phone", "motivation")
STEP_ONE_FIELDS = ("full_name", "organization", "organization_type", "email", "phone")

DOCUMENT_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
IMAGE_TYPES = {"image/png", "image/jpeg", "image/jpg", "image/svg+xml"}

# Upload order is part of the submission protocol.
FILE_FIELDS = {"cv": "document", "recommendation": "document", "logo": "image"}
URL_FIELDS = {"cv": "cv_url", "recommendation": "recommendation_letter_url", "logo": "logo_url"}
FILE_LABELS = {"cv": "CV", "recommendation": "recommendation letter", "logo": "logo"}

REQUIRED = "This field is required"
SUBMIT_FAILED = "Failed to submit application. Please try again."


class WizardAction(str, enum.Enum):
    NEXT = "next"
    PREV = "prev"
    SELECT_TOPIC = "select_topic"
    SELECT_MODULE = "select_module"
    SET_FIELD = "set_field"
    STAGE_FILE = "stage_file"
    REMOVE_FILE = "remove_file"
    ACCEPT_TERMS = "accept_terms"
    SUBMIT = "submit"
    RESTORE_DRAFT = "restore_draft"


@dataclass
class StagedFile:
    name: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class WizardState:
    current_step: int = FIRST_STEP
    selected_topic: int | None = None
    selected_module: str | None = None
    module_options: list[str] = field(default_factory=list)
    fields: dict[str, str] = field(default_factory=lambda: {name: "" for name in FIELD_NAMES})
    uploaded_files: dict[str, StagedFile] = field(default_factory=dict)
    terms_accepted: bool = False
    field_errors: dict[str, str] = field(default_factory=dict)
    review: dict[str, Any] | None = None
    submitting: bool = False
    submitted_application_id: str | None = None


@dataclass(frozen=True)
class SubmissionReceipt:
    application_id: str
    record: dict[str, Any]
    redirect_to: str = "/"


def format_file_size(size: int) -> str:
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    index = 0
    value = float(size)
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"


def validate_field(name: str, value: str) -> str | None:
    value = (value or "").strip()
    if not value:
        return REQUIRED
    if name == "email" and not EMAIL_RE.match(value):
        return "Please enter a valid email address"
    if name == "phone" and not PHONE_RE.match(value):
        return "Please enter a valid phone number"
    if name == "organization_type" and value not in {t.value for t in OrganizationType}:
        return "Please select a valid organization type"
    return None


def validate_step(state: WizardState, step: int) -> dict[str, str]:
    """Field errors blocking ``step``; an empty dict means the step passes."""
    errors: dict[str, str] = {}
    if step == 1:
        for name in STEP_ONE_FIELDS:
            message = validate_field(name, state.fields.get(name, ""))
            if message:
                errors[name] = message
    elif step == 2:
        motivation = state.fields.get("motivation", "").strip()
        if not state.selected_topic:
            errors["selected_topic"] = "Please select a topic"
        elif not state.selected_module:
            errors["selected_module"] = "Please select a module"
        elif len(motivation) < MIN_MOTIVATION_LENGTH:
            errors["motivation"] = (
                f"Please provide a more detailed explanation (at least {MIN_MOTIVATION_LENGTH} characters)"
            )
    elif step == 3:
        if "cv" not in state.uploaded_files:
            errors["cv"] = "Please upload your CV"
        elif "recommendation" not in state.uploaded_files:
            errors["recommendation"] = "Please upload your recommendation letter"
    elif step == 4:
        if not state.terms_accepted:
            errors["terms"] = "Please accept the terms and conditions"
    return errors


def build_review(state: WizardState) -> dict[str, Any]:
    fields = state.fields
    review: dict[str, Any] = {
        "full_name": fields["full_name"],
        "organization": fields["organization"],
        "email": fields["email"],
        "phone": fields["phone"],
        "organization_type": organization_type_label(fields["organization_type"]),
        "motivation": fields["motivation"],
        "cv_name": None,
        "recommendation_name": None,
        "logo_name": None,
        "show_logo": False,
    }
    topic = get_topic(state.selected_topic)
    if topic and state.selected_module in topic["modules"]:
        module = topic["modules"][state.selected_module]
        review.update(
            topic_title=topic["title"],
            topic_description=topic["description"],
            module_title=f"{state.selected_module} - {module['title']}",
            module_description=module["description"],
        )
    for name, staged in state.uploaded_files.items():
        review[f"{name}_name"] = staged.name
    review["show_logo"] = "logo" in state.uploaded_files
    return review


def build_payload(state: WizardState, application_id: str, urls: dict[str, str | None]) -> dict[str, Any]:
    fields = state.fields
    return {
        "application_id": application_id,
        "full_name": fields["full_name"].strip(),
        "organization": fields["organization"].strip(),
        "organization_type": fields["organization_type"],
        "email": fields["email"].strip(),
        "phone": fields["phone"].strip(),
        "selected_topic": state.selected_topic,
        "selected_module": state.selected_module,
        "motivation": fields["motivation"].strip(),
        "cv_url": urls.get("cv_url"),
        "recommendation_letter_url": urls.get("recommendation_letter_url"),
        "logo_url": urls.get("logo_url"),
        "status": ApplicationStatus.PENDING.value,
    }


class ApplicationWizard:
    def __init__(
        self,
        data_service: DataService,
        store: LocalStore | None = None,
        notifications: NotificationCenter | None = None,
        clock: Callable[[], float] = time.monotonic,
        draft_debounce: float = 1.0,
        max_document_bytes: int = 5 * 1024 * 1024,
        max_image_bytes: int = 2 * 1024 * 1024,
    ):
        self.data_service = data_service
        self.store = store or LocalStore()
        self.notifications = notifications or NotificationCenter(clock=clock)
        self.max_bytes = {"document": max_document_bytes, "image": max_image_bytes}
        self.state = WizardState()
        self._autosave = Debouncer(draft_debounce, self.save_draft, clock)
        self._handlers: dict[WizardAction, Callable[..., Result]] = {
            WizardAction.NEXT: self.next_step,
            WizardAction.PREV: self.prev_step,
            WizardAction.SELECT_TOPIC: self.select_topic,
            WizardAction.SELECT_MODULE: self.select_module,
            WizardAction.SET_FIELD: self.set_field,
            WizardAction.STAGE_FILE: self.stage_file,
            WizardAction.REMOVE_FILE: self.remove_file,
            WizardAction.ACCEPT_TERMS: self.accept_terms,
            WizardAction.SUBMIT: self.submit,
            WizardAction.RESTORE_DRAFT: self.restore_draft,
        }

    @classmethod
    def from_settings(
        cls, data_service: DataService, clock: Callable[[], float] = time.monotonic
    ) -> "ApplicationWizard":
        settings = get_settings()
        return cls(
            data_service,
            store=LocalStore(settings.local_store_path),
            notifications=NotificationCenter(settings.notification_timeout_seconds, clock),
            clock=clock,
            draft_debounce=settings.draft_debounce_ms / 1000,
            max_document_bytes=settings.max_document_bytes,
            max_image_bytes=settings.max_image_bytes,
        )

    def dispatch(self, action: WizardAction | str, **payload: Any) -> Result:
        try:
            handler = self._handlers[WizardAction(action)]
        except ValueError:
            return Result.invalid({"action": f"Unknown wizard action: {action}"})
        return handler(**payload)

    def poll(self) -> bool:
        """Run the debounced draft save if it is due."""
        return self._autosave.poll()

    # -- navigation -------------------------------------------------------

    def next_step(self) -> Result:
        state = self.state
        errors = validate_step(state, state.current_step)
        if errors:
            state.field_errors.update(errors)
            self.notifications.error(next(iter(errors.values())))
            return Result.invalid(errors)
        if state.current_step < LAST_STEP:
            state.current_step += 1
            if state.current_step == LAST_STEP:
                state.review = build_review(state)
        return Result.ok(state.current_step)

    def prev_step(self) -> Result:
        if self.state.current_step > FIRST_STEP:
            self.state.current_step -= 1
        return Result.ok(self.state.current_step)

    # -- step 2 selection -------------------------------------------------

    def select_topic(self, topic_id: int | str) -> Result:
        try:
            topic_id = int(topic_id)
        except (TypeError, ValueError):
            topic_id = None
        if topic_id not in TOPICS:
            return Result.invalid({"selected_topic": "Please select a topic"})
        state = self.state
        state.selected_topic = topic_id
        state.selected_module = None
        state.module_options = module_choices(topic_id)
        state.field_errors.pop("selected_topic", None)
        self._autosave.trigger()
        return Result.ok(list(state.module_options))

    def select_module(self, module_key: str) -> Result:
        state = self.state
        if not state.selected_topic:
            return Result.invalid({"selected_topic": "Please select a topic"})
        if not module_belongs_to_topic(state.selected_topic, module_key):
            return Result.invalid({"selected_module": "Please select a module"})
        state.selected_module = module_key
        state.field_errors.pop("selected_module", None)
        self._autosave.trigger()
        return Result.ok(module_key)

    def can_advance_from_step_two(self) -> bool:
        state = self.state
        return bool(
            state.selected_topic and state.selected_module and state.fields.get("motivation", "").strip()
        )

    # -- fields -----------------------------------------------------------

    def set_field(self, name: str, value: Any) -> Result:
        if name not in FIELD_NAMES:
            return Result.invalid({name: f"Unknown field: {name}"})
        self.state.fields[name] = "" if value is None else str(value)
        self.state.field_errors.pop(name, None)
        self._autosave.trigger()
        return Result.ok(self.state.fields[name])

    def accept_terms(self, accepted: bool = True) -> Result:
        self.state.terms_accepted = bool(accepted)
        if accepted:
            self.state.field_errors.pop("terms", None)
        return Result.ok(self.state.terms_accepted)

    # -- file staging -----------------------------------------------------

    def stage_file(self, field_name: str, filename: str, content_type: str, data: bytes) -> Result:
        kind = FILE_FIELDS.get(field_name)
        if kind is None:
            return Result.invalid({field_name: f"Unknown file field: {field_name}"})
        max_bytes = self.max_bytes[kind]
        allowed = DOCUMENT_TYPES if kind == "document" else IMAGE_TYPES
        if len(data) > max_bytes:
            message = f"File size must be less than {max_bytes / (1024 * 1024):g}MB"
        elif content_type not in allowed:
            message = f"Invalid file type. Please select a valid {kind} file."
        else:
            message = None
        if message:
            self.state.uploaded_files.pop(field_name, None)
            self.notifications.error(message)
            return Result.invalid({field_name: message})

        staged = StagedFile(name=filename, content_type=content_type, data=data)
        self.state.uploaded_files[field_name] = staged
        self.state.field_errors.pop(field_name, None)
        return Result.ok({"name": staged.name, "size": staged.size, "size_label": format_file_size(staged.size)})

    def remove_file(self, field_name: str) -> Result:
        if self.state.uploaded_files.pop(field_name, None) is None:
            return Result.fail(ErrorKind.NOT_FOUND, f"No file staged for {field_name}")
        self.notifications.success("File removed successfully")
        return Result.ok(field_name)

    # -- submission -------------------------------------------------------

    def submit(self) -> Result:
        state = self.state
        if state.submitting:
            return Result.fail(ErrorKind.VALIDATION, "Submission already in progress")
        if state.current_step != LAST_STEP:
            return Result.invalid({"step": "Complete all steps before submitting"})
        errors: dict[str, str] = {}
        for step in range(FIRST_STEP, LAST_STEP + 1):
            errors.update(validate_step(state, step))
        if errors:
            state.field_errors.update(errors)
            self.notifications.error(next(iter(errors.values())))
            return Result.invalid(errors)

        state.submitting = True
        try:
            return self._submit()
        finally:
            state.submitting = False

    def _submit(self) -> Result:
        state = self.state
        application_id = generate_application_id()
        urls: dict[str, str | None] = {}
        for name in FILE_FIELDS:
            staged = state.uploaded_files.get(name)
            if staged is None:
                continue
            path = f"{application_id}/{name}/{safe_filename(staged.name)}"
            uploaded = self.data_service.upload_object(staged.data, path, staged.content_type)
            if not uploaded.success:
                return self._submission_failed(
                    uploaded, f"Failed to upload {FILE_LABELS[name]}: {uploaded.message}"
                )
            urls[URL_FIELDS[name]] = uploaded.data["url"]

        created = self.data_service.create_record(build_payload(state, application_id, urls))
        if not created.success:
            return self._submission_failed(created, f"Failed to submit application: {created.message}")

        self.clear_draft()
        self.store.set(LAST_APPLICATION_KEY, application_id)
        state.submitted_application_id = application_id
        self.notifications.success("Application submitted successfully!")
        logger.info("application %s submitted", application_id)
        return Result.ok(SubmissionReceipt(application_id=application_id, record=created.data))

    def _submission_failed(self, result: Result, message: str) -> Result:
        logger.error("form submission error: %s", message)
        self.notifications.error(SUBMIT_FAILED)
        return Result.fail(result.kind or ErrorKind.SERVICE, message, result.error.field_errors)

    # -- draft persistence ------------------------------------------------

    def draft_snapshot(self) -> dict[str, Any]:
        snapshot: dict[str, Any] = dict(self.state.fields)
        snapshot["selected_topic"] = self.state.selected_topic
        snapshot["selected_module"] = self.state.selected_module
        return snapshot

    def save_draft(self) -> None:
        self.store.set(DRAFT_KEY, self.draft_snapshot())

    def clear_draft(self) -> None:
        self._autosave.cancel()
        self.store.remove(DRAFT_KEY)

    def restore_draft(self) -> Result:
        try:
            snapshot = self.store.get(DRAFT_KEY)
        except ValueError:
            logger.exception("error loading saved draft")
            return Result.fail(ErrorKind.VALIDATION, "Saved draft is unreadable")
        if not isinstance(snapshot, dict):
            return Result.ok(False)

        for name in FIELD_NAMES:
            value = snapshot.get(name)
            if value is not None:
                self.state.fields[name] = str(value)
        # Module choices depend on the topic, so replay the selections.
        if snapshot.get("selected_topic"):
            if self.select_topic(snapshot["selected_topic"]).success and snapshot.get("selected_module"):
                self.select_module(snapshot["selected_module"])
        self._autosave.cancel()
        return Result.ok(True)
