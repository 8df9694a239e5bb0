"""
Streamlit Frontend for SAMBHAV

The admin's day-to-day screen: log in, add bills, and read the ledger.

DESIGN PRINCIPLES:
1. One row per client, totals always visible
2. Search narrows the ledger as you type
3. Destructive actions ask for confirmation
4. An expired session sends you back to the login page

The ledger is rebuilt from a fresh read of the store on every rerun,
so adds and deletes show up immediately.
"""

import asyncio

import streamlit as st

from sambhav.auth import AuthError, CredentialGate, UnauthorizedError
from sambhav.ledger import form_amount, format_inr, format_ledger_date
from sambhav.logging_setup import configure_logging
from sambhav.models.record import LedgerRow, LedgerView
from sambhav.orchestrator import BillFile, RecordService, create_app_components
from sambhav.services.image import BlobStoreError
from sambhav.services.storage import RecordValidationError, StorageError


# Page configuration
st.set_page_config(
    page_title="SAMBHAV",
    page_icon="₹",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .big-number {
        font-size: 2.2em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)

MAX_BILL_BUTTONS = 3


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> tuple[RecordService, CredentialGate]:
    """Get or create application components (cached)."""
    configure_logging()
    service, _ = create_app_components(use_storage=True)
    return service, CredentialGate.from_settings()


def logout():
    st.session_state.pop("token", None)
    st.session_state.pop("pending_delete", None)


def current_user(gate: CredentialGate):
    """Return the logged-in username, or None after clearing a bad session."""
    token = st.session_state.get("token")
    if not token:
        return None
    try:
        return gate.verify(token)
    except UnauthorizedError as e:
        logout()
        st.warning(str(e))
        return None


def render_login_page(gate: CredentialGate):
    """Render the login form."""
    st.title("₹ SAMBHAV")
    st.markdown("Sign in to manage the account ledger.")

    with st.form("login"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Login", type="primary")

    if submitted:
        try:
            session = gate.login(username, password)
        except AuthError as e:
            st.error(str(e))
        else:
            st.session_state.token = session.token
            st.rerun()


def render_bill_links(row: LedgerRow):
    links = [
        f"[{i + 1}]({url})"
        for i, url in enumerate(row.bill_image_urls[:MAX_BILL_BUTTONS])
    ]
    extra = len(row.bill_image_urls) - MAX_BILL_BUTTONS
    if extra > 0:
        links.append(f"+{extra}")
    st.markdown(" ".join(links))


def render_ledger_row(service: RecordService, index: int, row: LedgerRow):
    cols = st.columns([0.4, 2, 1.6, 1.6, 0.8, 1.4, 1.4, 1.2, 1.2])
    cols[0].write(index + 1)
    cols[1].write(f"**{row.user_name}**")
    cols[2].write(row.mobile_number)
    cols[3].write(row.location)
    cols[4].write(row.entry_count)
    cols[5].write(format_inr(row.total_amount))
    cols[6].write(format_ledger_date(row.latest_date))
    with cols[7]:
        render_bill_links(row)

    key = row.record_ids[0]
    with cols[8]:
        if st.session_state.get("pending_delete") == key:
            if st.button("Confirm", key=f"confirm-{key}", type="primary"):
                result = run_async(service.delete_records(row.record_ids))
                st.session_state.pop("pending_delete", None)
                if not result.ok:
                    st.session_state.flash_error = (
                        f"Failed to delete {len(result.failed)} of "
                        f"{len(row.record_ids)} entries for {row.user_name}"
                    )
                st.rerun()
            if st.button("Cancel", key=f"cancel-{key}"):
                st.session_state.pop("pending_delete", None)
                st.rerun()
        elif st.button("🗑 Delete", key=f"delete-{key}"):
            st.session_state.pending_delete = key
            st.rerun()

    if st.session_state.get("pending_delete") == key:
        st.warning(
            f"Delete all {len(row.record_ids)} entries for {row.user_name}? "
            "This also removes their bill images."
        )


def render_ledger_table(service: RecordService, view: LedgerView):
    headers = ["#", "User Name", "Mobile Number", "Location", "Entries",
               "Total Amount", "Last Updated", "Bills", "Action"]
    cols = st.columns([0.4, 2, 1.6, 1.6, 0.8, 1.4, 1.4, 1.2, 1.2])
    for col, header in zip(cols, headers):
        col.markdown(f"**{header}**")

    for index, row in enumerate(view.rows):
        render_ledger_row(service, index, row)

    st.markdown("---")
    st.markdown(f"**Grand Total:** {format_inr(view.grand_total)}")


def render_dashboard_page(service: RecordService):
    """Render the account ledger."""
    st.title("📒 Account Ledger")

    if "flash_error" in st.session_state:
        st.error(st.session_state.pop("flash_error"))

    query = st.text_input(
        "Search",
        placeholder="Search by name, mobile, amount, or location...",
        label_visibility="collapsed",
    )

    try:
        view = run_async(service.ledger_view(query))
    except StorageError as e:
        st.error(f"Could not load records: {e}")
        return

    st.markdown(
        f"{view.client_count} clients • {view.entry_count} entries • "
        f"Total: <span class='big-number'>{format_inr(view.grand_total)}</span>",
        unsafe_allow_html=True,
    )

    if view.entry_count == 0:
        st.info("📋 No records yet. Use 'Add Record' to add your first bill.")
        return
    if not view.rows:
        st.info(f"🔍 No records match \"{query}\".")
        return

    render_ledger_table(service, view)


def render_add_page(service: RecordService):
    """Render the add-record form."""
    st.title("➕ Add New Record")

    max_mb = service.blob_store.max_size_bytes / (1024 * 1024)
    with st.form("add_record", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            user_name = st.text_input("User Name *", placeholder="Enter client name")
            amount = st.number_input("Amount (₹) *", min_value=0.0, step=0.01, format="%.2f")
        with col2:
            mobile_number = st.text_input("Mobile Number *", placeholder="Enter mobile number")
            location = st.text_input("Location *", placeholder="Enter location")

        bill = st.file_uploader(
            f"Bill Image * (max {max_mb:g} MB)",
            type=service.blob_store.allowed_formats,
        )
        submitted = st.form_submit_button("Save Record", type="primary")

    if not submitted:
        return
    if bill is None:
        st.error("Please upload a bill image")
        return

    fields = {
        "user_name": user_name,
        "mobile_number": mobile_number,
        "amount": form_amount(amount),
        "location": location,
    }
    with st.spinner("Uploading bill..."):
        try:
            record = run_async(
                service.create_record(
                    fields,
                    BillFile(content=bill.getvalue(), filename=bill.name, content_type=bill.type),
                )
            )
        except (RecordValidationError, BlobStoreError, StorageError) as e:
            st.error(f"Failed to add record: {e}")
            return

    st.success(f"✅ Saved {format_inr(record.amount)} for {record.user_name}")


def render_settings_page():
    """Render the connection status page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    from sambhav.config import validate_all_settings

    status = validate_all_settings()

    services = [
        ("Cloudinary (Bill Storage)", "cloudinary"),
        ("Google Sheets (Records)", "google_sheets"),
        ("Admin Login", "auth"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown(
        "To configure the application, create a `.env` file with your keys. "
        "See `.env.example` for the required variables."
    )


def main():
    """Main application entry point."""
    try:
        service, gate = get_components()
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        render_settings_page()
        return

    user = current_user(gate)
    if user is None:
        render_login_page(gate)
        return

    st.sidebar.title("₹ SAMBHAV")
    st.sidebar.caption(f"Signed in as {user}")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📒 Ledger", "➕ Add Record", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("Logout"):
        logout()
        st.rerun()

    if page == "📒 Ledger":
        render_dashboard_page(service)
    elif page == "➕ Add Record":
        render_add_page(service)
    elif page == "⚙️ Settings":
        render_settings_page()


if __name__ == "__main__":
    main()
