"""
Streamlit admin console for contact form submissions.

Pages:
- Sign in (email/password)
- Submissions: search, ordering, latest-24h filter, paging, CSV export,
  read toggling and deletion

Every rerun re-verifies the admin claim before anything protected renders.
"""

import asyncio
from typing import Any, Coroutine, TypeVar

import streamlit as st
from loguru import logger

from admin_console.auth import AuthError, AuthSession, FirebaseIdentityProvider
from admin_console.config import get_settings
from admin_console.models import SortDirection, SortField, Submission
from admin_console.services import LoadState, SubmissionBrowser
from admin_console.store import FirestoreStore, InMemoryDocumentStore
from admin_console.utils.csv_export import CSV_MIME_TYPE
from admin_console.utils.dates import humanize_date
from admin_console.utils.logging import new_session_id, setup_logging

T = TypeVar("T")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Drive a coroutine to completion from Streamlit's script thread."""
    return asyncio.run(coro)


def setup_page_config() -> None:
    """Configure Streamlit page settings."""
    st.set_page_config(
        page_title="Admin Dashboard",
        page_icon="📬",
        layout="wide",
        initial_sidebar_state="collapsed"
    )


@st.cache_resource
def get_memory_store() -> InMemoryDocumentStore:
    """Process-wide in-memory store (cached) for local runs."""
    return InMemoryDocumentStore()


def initialize_session_state() -> None:
    """Initialize Streamlit session state variables."""
    settings = get_settings()

    # Identity is per browser session, never shared across users
    if 'identity' not in st.session_state:
        st.session_state.identity = FirebaseIdentityProvider.from_settings(settings)

    if 'auth' not in st.session_state:
        auth = AuthSession(st.session_state.identity)
        run_async(auth.start())
        st.session_state.auth = auth

    if 'browser' not in st.session_state:
        if settings.store_backend == "memory":
            store = get_memory_store()
        else:
            store = FirestoreStore.from_settings(token_provider=st.session_state.identity.get_id_token,
                                                 settings=settings)
        st.session_state.browser = SubmissionBrowser.from_settings(store, settings)

    if 'pending_delete' not in st.session_state:
        st.session_state.pending_delete = None


def render_login() -> None:
    """Render the sign-in form."""
    st.title("Admin Sign in")

    with st.form("login"):
        email = st.text_input("Email", placeholder="admin@example.com")
        password = st.text_input("Password", type="password", placeholder="password")
        submitted = st.form_submit_button("Sign in", use_container_width=True)

    if submitted:
        try:
            run_async(st.session_state.auth.login(email, password))
        except AuthError as e:
            logger.warning(f"Sign-in failed for {email}: {e.message}")
            st.error("Invalid email or password")
            return
        st.rerun()


def render_header() -> None:
    """Render the title bar with the sign-out action."""
    col1, col2 = st.columns([6, 1])
    with col1:
        st.title("Admin Dashboard")
    with col2:
        if st.button("Sign out", use_container_width=True):
            run_async(st.session_state.auth.logout())
            st.session_state.pop('browser', None)
            st.rerun()


def render_access_denied() -> None:
    render_header()
    st.error("This account is not authorized to view submissions.")


def render_controls(browser: SubmissionBrowser) -> None:
    """Search, ordering and filter controls plus the export button."""
    col1, col2, col3, col4, col5 = st.columns([3, 2, 2, 2, 2])

    with col1:
        browser.search = st.text_input(
            "Search",
            value=browser.search,
            placeholder="Search name / email / message",
            label_visibility="collapsed"
        )

    with col2:
        fields = list(SortField)
        sort_field = st.selectbox(
            "Order by",
            options=fields,
            index=fields.index(browser.sort_field),
            format_func=lambda field: field.label,
            label_visibility="collapsed"
        )

    with col3:
        directions = [SortDirection.DESCENDING, SortDirection.ASCENDING]
        sort_direction = st.selectbox(
            "Direction",
            options=directions,
            index=directions.index(browser.sort_direction),
            format_func=lambda direction: direction.label,
            label_visibility="collapsed"
        )

    with col4:
        latest_only = st.checkbox(
            f"Latest messages ({int(browser.latest_window.total_seconds() // 3600)}h)",
            value=browser.latest_only
        )

    # Each setter is a no-op unless the selection changed
    run_async(browser.set_sort_field(sort_field))
    run_async(browser.set_sort_direction(sort_direction))
    run_async(browser.set_latest_only(latest_only))

    with col5:
        data = browser.export_csv()
        if data is not None:
            st.download_button(
                "Export CSV",
                data=data,
                file_name=get_settings().export_filename,
                mime=CSV_MIME_TYPE,
                use_container_width=True
            )


def render_row(browser: SubmissionBrowser, submission: Submission) -> None:
    """Render one submission with its actions."""
    settings = get_settings()
    cols = st.columns([2, 3, 5, 2, 1, 3])

    cols[0].write(submission.name or "")
    cols[1].write(submission.email or "")
    cols[2].write(submission.message or "")
    cols[3].write(humanize_date(submission.submitted_at, settings.date_format, settings.display_timezone))
    cols[4].write("Read" if submission.read else "**Unread**")

    with cols[5]:
        action1, action2 = st.columns(2)
        label = "Mark unread" if submission.read else "Mark read"
        if action1.button(label, key=f"toggle-{submission.id}"):
            run_async(browser.toggle_read(submission.id))
            st.rerun()
        if action2.button("Delete", key=f"delete-{submission.id}"):
            st.session_state.pending_delete = submission.id
            st.rerun()

    if st.session_state.pending_delete == submission.id:
        st.warning("Delete this submission? This is permanent.")
        confirm_col, cancel_col, _ = st.columns([1, 1, 6])
        if confirm_col.button("Confirm delete", key=f"confirm-{submission.id}", type="primary"):
            st.session_state.pending_delete = None
            run_async(browser.delete(submission.id, confirm=lambda _: True))
            st.rerun()
        if cancel_col.button("Cancel", key=f"cancel-{submission.id}"):
            st.session_state.pending_delete = None
            st.rerun()


def render_table(browser: SubmissionBrowser) -> None:
    """Render the current page, or the loading/error/empty states."""
    headers = st.columns([2, 3, 5, 2, 1, 3])
    for col, title in zip(headers, ["Name", "Email", "Message", "Date", "Status", "Actions"]):
        col.markdown(f"**{title}**")

    if browser.state is LoadState.ERROR:
        st.error(f"Could not load submissions: {browser.error}")
        if st.button("Retry"):
            run_async(browser.retry())
            st.rerun()
        return

    if browser.is_busy:
        st.info("Loading...")
        return

    visible = browser.visible_items
    if not visible:
        st.info("No submissions")
        return

    for submission in visible:
        render_row(browser, submission)


def render_pagination(browser: SubmissionBrowser) -> None:
    """Render the page footer with Previous / Next."""
    if not browser.items and not browser.has_prev:
        return

    col1, col2, col3 = st.columns([6, 1, 1])
    with col1:
        st.caption(
            f"Page {browser.current_page + 1} — showing {len(browser.visible_items)} of {browser.page_size}"
        )
    with col2:
        if st.button("Previous", disabled=not browser.has_prev or browser.is_busy, use_container_width=True):
            run_async(browser.go_prev())
            st.rerun()
    with col3:
        if st.button("Next", disabled=not browser.has_next or browser.is_busy, use_container_width=True):
            run_async(browser.go_next())
            st.rerun()


def render_submissions() -> None:
    """Render the submissions page."""
    browser: SubmissionBrowser = st.session_state.browser
    run_async(browser.ensure_loaded())

    render_header()

    if browser.mutation_error:
        col1, col2 = st.columns([8, 1])
        col1.error(browser.mutation_error)
        if col2.button("Dismiss"):
            browser.dismiss_error()
            st.rerun()

    render_controls(browser)
    render_table(browser)
    render_pagination(browser)


def render_app() -> None:
    """Gate every view on a freshly verified admin claim."""
    auth: AuthSession = st.session_state.auth

    if auth.provider.current_user is None:
        render_login()
        return

    if not run_async(auth.require_admin()):
        render_access_denied()
        return

    render_submissions()


def main() -> None:
    """Main admin console application."""
    setup_page_config()
    setup_logging()

    if 'session_id' not in st.session_state:
        st.session_state.session_id = new_session_id()

    with logger.contextualize(session=st.session_state.session_id):
        initialize_session_state()
        render_app()


if __name__ == "__main__":
    main()
