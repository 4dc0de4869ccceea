"""Application views: list, detail, form, status update and delete."""

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, status

from jobtracker.core.config import settings
from jobtracker.core.exceptions import (
    AppwriteError,
    backend_exception,
    describe_detail_error,
)
from jobtracker.routers.guards import require_auth
from jobtracker.schemas.application import (
    STATUS_OPTIONS,
    Application,
    ApplicationForm,
    StatusUpdate,
)
from jobtracker.schemas.views import (
    ApplicationRow,
    ConfirmationView,
    DetailView,
    FormView,
    ListView,
    MutationResponse,
    StatusBadge,
    StatusFilterLink,
)
from jobtracker.services.application_service import ApplicationService
from jobtracker.services.dependencies import get_application_service, get_notifier
from jobtracker.services.notifications import Notifier
from jobtracker.utils.formatting import format_date_with_ordinal
from jobtracker.utils.listing import (
    ALL,
    ListViewState,
    derive_list,
    parse_status_filter,
)

logger = logging.getLogger(__name__)

LIST_PATH = "/applications"

router = APIRouter(
    prefix=LIST_PATH,
    tags=["applications"],
    dependencies=[Depends(require_auth)],
)


def _list_url(state: ListViewState) -> str:
    params = state.query_params()
    return f"{LIST_PATH}?{urlencode(params)}" if params else LIST_PATH


def _status_options() -> list[StatusBadge]:
    return [StatusBadge.from_option(option) for option in STATUS_OPTIONS]


async def _load_application(
    application_id: str, service: ApplicationService
) -> Application:
    try:
        return await service.get_application(application_id)
    except AppwriteError as e:
        status_code, description = describe_detail_error(e, application_id)
        raise HTTPException(status_code=status_code, detail=description) from e


@router.get("", response_model=ListView)
async def list_applications(
    status_filter: str = Query(default=ALL, alias="status"),
    q: str = Query(default="", max_length=200),
    page: int = Query(default=1, ge=1),
    service: ApplicationService = Depends(get_application_service),
):
    """Filtered, searched and paginated applications with overall stats."""
    try:
        selected = parse_status_filter(status_filter)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown status filter: {status_filter}",
        ) from None

    try:
        result = await service.list_applications()
    except AppwriteError as e:
        raise backend_exception(
            e, "Failed to load applications. Please try again."
        ) from e

    state = ListViewState(status=selected, query=q, page=page)
    derived = derive_list(result.documents, state, settings.page_size)

    filters = [
        StatusFilterLink(
            value=ALL,
            label="All",
            url=_list_url(state.with_status(ALL)),
            active=selected == ALL,
        )
    ]
    filters.extend(
        StatusFilterLink(
            value=option.value.value,
            label=option.label,
            url=_list_url(state.with_status(option.value)),
            active=selected == option.value,
        )
        for option in STATUS_OPTIONS
    )

    current = derived.page
    empty_message = None
    if not result.documents:
        empty_message = (
            "No applications found. Start by adding your first job application!"
        )
    elif not derived.filtered:
        empty_message = "No applications match your filters."

    return ListView(
        items=[ApplicationRow.build(app) for app in current.items],
        status=selected if selected == ALL else selected.value,
        query=q,
        page=current.page,
        page_size=current.page_size,
        total_pages=current.total_pages,
        filtered_count=current.total_items,
        has_prev=current.has_prev,
        has_next=current.has_next,
        prev_url=_list_url(state.with_page(page - 1)) if current.has_prev else None,
        next_url=_list_url(state.with_page(page + 1)) if current.has_next else None,
        filters=filters,
        stats=derived.stats,
        empty_message=empty_message,
    )


@router.get("/new", response_model=FormView)
async def new_application_form():
    """Defaults for the create form."""
    return FormView(
        mode="create",
        title="Add New Application",
        submit_label="Create Application",
        values=ApplicationForm.model_construct().to_payload(),
        status_options=_status_options(),
    )


@router.post("", response_model=MutationResponse, status_code=status.HTTP_201_CREATED)
async def create_application(
    form: ApplicationForm,
    service: ApplicationService = Depends(get_application_service),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        result = await service.create_application(form)
    except AppwriteError as e:
        message = "Failed to create application. Please try again."
        notifier.error(message)
        raise backend_exception(e, message) from e

    notifier.success("Application created successfully!")
    return MutationResponse(message=result.message, application=result.data)


@router.get("/{application_id}", response_model=DetailView)
async def view_application(
    application_id: str,
    service: ApplicationService = Depends(get_application_service),
):
    application = await _load_application(application_id, service)
    return DetailView(
        row=ApplicationRow.build(application),
        created_display=(
            format_date_with_ordinal(application.created_at)
            if application.created_at
            else None
        ),
        updated_display=(
            format_date_with_ordinal(application.updated_at)
            if application.updated_at
            else None
        ),
    )


@router.get("/{application_id}/edit", response_model=FormView)
async def edit_application_form(
    application_id: str,
    service: ApplicationService = Depends(get_application_service),
):
    """Edit form prefilled from the stored record."""
    application = await _load_application(application_id, service)
    return FormView(
        mode="edit",
        title="Edit Application",
        submit_label="Update Application",
        values=ApplicationForm.from_application(application).to_payload(),
        status_options=_status_options(),
    )


@router.put("/{application_id}", response_model=MutationResponse)
async def update_application(
    application_id: str,
    form: ApplicationForm,
    service: ApplicationService = Depends(get_application_service),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        result = await service.update_application(application_id, form)
    except AppwriteError as e:
        message = "Failed to update application. Please try again."
        notifier.error(message)
        raise backend_exception(e, message) from e

    notifier.success("Application updated successfully!")
    return MutationResponse(message=result.message, application=result.data)


@router.patch("/{application_id}/status", response_model=MutationResponse)
async def update_application_status(
    application_id: str,
    update: StatusUpdate,
    service: ApplicationService = Depends(get_application_service),
    notifier: Notifier = Depends(get_notifier),
):
    """Inline status change from the list view."""
    try:
        result = await service.update_status(application_id, update.status)
    except AppwriteError as e:
        message = "Failed to update status. Please try again."
        notifier.error(message)
        raise backend_exception(e, message) from e

    notifier.success("Status updated successfully!")
    return MutationResponse(message=result.message, application=result.data)


@router.get("/{application_id}/delete", response_model=ConfirmationView)
async def confirm_delete(
    application_id: str,
    service: ApplicationService = Depends(get_application_service),
):
    """Confirmation prompt shown before a delete."""
    application = await _load_application(application_id, service)
    return ConfirmationView(
        title="Delete Application",
        description=(
            "Are you sure you want to delete the application for "
            f"{application.position_title} at {application.company_name}? "
            "This action cannot be undone."
        ),
        confirm_label="Delete",
        action_url=f"{LIST_PATH}/{application_id}",
        method="DELETE",
    )


@router.delete("/{application_id}", response_model=MutationResponse)
async def delete_application(
    application_id: str,
    service: ApplicationService = Depends(get_application_service),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        result = await service.delete_application(application_id)
    except AppwriteError as e:
        message = "Failed to delete application. Please try again."
        notifier.error(message)
        raise backend_exception(e, message) from e

    notifier.success("Application deleted successfully!")
    return MutationResponse(message=result.message, redirect=LIST_PATH)
