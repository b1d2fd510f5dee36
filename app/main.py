"""
Streamlit Frontend for Subtracker

A single-user dashboard for recurring subscriptions: what is due, what it
costs me per month, and a one-click "mark as billed".

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Nothing changes without an explicit button press
3. Form errors are shown next to the data the user typed, nothing is saved
4. Billing dates only move through "Mark as billed"

Every write goes through SubscriptionService; the page never talks to
storage directly.
"""

import asyncio
from datetime import date
from uuid import UUID

import streamlit as st

from subtracker.audit import create_correlation_id
from subtracker.auth import check_credentials, is_auth_required
from subtracker.config import get_settings, validate_all_settings
from subtracker.engine import format_billing_frequency, format_date_only, to_date_only_string
from subtracker.models import (
    BillingType,
    CostMode,
    Currency,
    DashboardSummary,
    Subscription,
    SubscriptionView,
)
from subtracker.orchestrator import (
    ArchivedSubscriptionError,
    SubscriptionService,
    SubscriptionValidationError,
    create_app_components,
)
from subtracker.presentation import (
    cost_mode_description,
    logo_monogram,
    reminder_badge,
    render_amount,
)
from subtracker.services.storage import NotFoundError, StorageError


# Page configuration
st.set_page_config(
    page_title="Subtracker",
    page_icon="📅",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .monogram {
        display: inline-block;
        width: 2.5em;
        height: 2.5em;
        line-height: 2.5em;
        text-align: center;
        border-radius: 0.75em;
        background: linear-gradient(145deg, #DBEAFE, #BFDBFE);
        color: #1E3A8A;
        font-weight: bold;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components()


def require_login(audit_logger) -> bool:
    """Show the login form until the configured credentials are entered."""
    if not is_auth_required() or st.session_state.get("authenticated"):
        return True

    st.title("🔒 Subtracker")
    with st.form("login"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        if check_credentials(username, password):
            st.session_state.authenticated = True
            st.rerun()
        else:
            run_async(audit_logger.log_login_failed(username))
            st.error("Authentication required")
    return False


def main():
    """Main application entry point."""
    service, dashboard_query, audit_logger = get_components()

    if not require_login(audit_logger):
        st.stop()

    st.sidebar.title("📅 Subtracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "➕ Add Subscription", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How it works:**
        1. Add each subscription once
        2. Check the reminders when a bill is due
        3. Press "Mark as billed" after paying
        """
    )

    if st.session_state.get("editing_id"):
        render_edit_page(service)
    elif page == "📊 Dashboard":
        render_dashboard_page(service, dashboard_query)
    elif page == "➕ Add Subscription":
        render_add_page(service)
    elif page == "⚙️ Settings":
        render_settings_page(audit_logger)


# =============================================================================
# DASHBOARD
# =============================================================================

def render_dashboard_page(service: SubscriptionService, dashboard_query):
    st.title("📊 Subtracker")
    st.markdown("Track recurring payments, shared plans and due dates.")

    summary: DashboardSummary = run_async(dashboard_query.build())
    if summary.error_message:
        st.error(f"Could not load subscriptions: {summary.error_message}")
        return

    date_format = get_settings().app.date_display_format

    col1, col2, col3, col4 = st.columns(4)
    col1.metric(
        f"Monthly total ({summary.display_currency.value})",
        render_amount(summary.monthly_total, summary.display_currency),
    )
    col2.metric("Overdue", summary.overdue_count)
    col3.metric("Due today", summary.due_today_count)
    col4.metric(f"Next {summary.upcoming_window_days} days", summary.upcoming_count)

    st.caption(f"USD rate: 1 USD = {get_settings().app.exchange_rate:,} VND")

    st.markdown("### 🔔 Reminders")
    if not summary.reminders:
        st.info("No reminders for now.")
    for view in summary.reminders:
        render_reminder(service, view, date_format)

    st.markdown("### 📋 Subscriptions")
    if summary.is_empty:
        st.info("No subscriptions yet. Use 'Add Subscription' to create your first one.")
    for view in summary.subscriptions:
        render_card(service, view, date_format)


def render_reminder(service: SubscriptionService, view: SubscriptionView, date_format: str):
    subscription = view.subscription
    col1, col2 = st.columns([4, 1])
    with col1:
        st.markdown(
            f"{reminder_badge(view.reminder_bucket)} **{subscription.name}** · "
            f"{format_date_only(subscription.next_billing_date, date_format)} · "
            f"{render_amount(view.my_cost, subscription.currency)}"
        )
    with col2:
        if st.button("✅ Mark as billed", key=f"reminder-billed-{subscription.id}"):
            mark_billed(service, subscription)


def render_card(service: SubscriptionService, view: SubscriptionView, date_format: str):
    subscription = view.subscription
    with st.container(border=True):
        head, body, actions = st.columns([1, 5, 2])
        with head:
            st.markdown(
                f'<span class="monogram">{logo_monogram(subscription.name)}</span>',
                unsafe_allow_html=True,
            )
        with body:
            badge = reminder_badge(view.reminder_bucket)
            st.markdown(f"**{subscription.name}** {badge}")
            st.markdown(
                f"My cost: **{render_amount(view.my_cost, subscription.currency)}** · "
                f"Monthly: {render_amount(view.monthly_cost, subscription.currency)}"
            )
            st.caption(
                f"{format_billing_frequency(subscription.billing_type, subscription.billing_interval)} · "
                f"Next billing {format_date_only(subscription.next_billing_date, date_format)} · "
                f"{cost_mode_description(subscription)} · "
                f"Total {render_amount(subscription.total_amount, subscription.currency)}"
            )
            if subscription.note:
                st.caption(subscription.note)
        with actions:
            if st.button("✏️ Edit", key=f"edit-{subscription.id}"):
                st.session_state.editing_id = str(subscription.id)
                st.rerun()
            if st.button("✅ Mark as billed", key=f"billed-{subscription.id}"):
                mark_billed(service, subscription)
            if st.button("🗄️ Archive", key=f"archive-{subscription.id}"):
                try:
                    run_async(service.archive(subscription.id, create_correlation_id()))
                except StorageError as e:
                    st.error(f"Could not archive: {e}")
                    return
                st.rerun()


def mark_billed(service: SubscriptionService, subscription: Subscription):
    try:
        next_date = run_async(service.mark_billed(subscription.id, create_correlation_id()))
    except SubscriptionValidationError as e:
        show_field_errors(e)
        return
    except (ArchivedSubscriptionError, StorageError) as e:
        st.error(f"Could not mark as billed: {e}")
        return
    st.toast(f"{subscription.name}: next billing {to_date_only_string(next_date)}")
    st.rerun()


# =============================================================================
# ADD / EDIT
# =============================================================================

def subscription_form(key: str, existing: Subscription = None) -> dict:
    """Render the subscription fields. Returns raw values, or {} until submitted."""
    currencies = [c.value for c in Currency]
    modes = [m.value for m in CostMode]
    billing_types = [b.value for b in BillingType]

    with st.form(key):
        name = st.text_input("Name", value=existing.name if existing else "")

        col1, col2 = st.columns(2)
        with col1:
            total_amount = st.text_input(
                "Total amount",
                value=str(existing.total_amount) if existing else "",
                help="Full bill amount per billing cycle",
            )
        with col2:
            currency = st.selectbox(
                "Currency",
                currencies,
                index=currencies.index(existing.currency.value) if existing else 0,
            )

        cost_mode = st.selectbox(
            "Cost mode",
            modes,
            index=modes.index(existing.cost_mode.value) if existing else 0,
            help="full: I pay everything · split: shared plan · fixed: I pay a set amount",
        )

        col1, col2, col3 = st.columns(3)
        with col1:
            split_total_users = st.text_input(
                "Split total users",
                value=str(existing.split_total_users) if existing and existing.split_total_users else "",
            )
        with col2:
            my_share = st.text_input(
                "My share",
                value=str(existing.my_share) if existing and existing.my_share else "",
            )
        with col3:
            fixed_amount = st.text_input(
                "Fixed amount",
                value=str(existing.fixed_amount) if existing and existing.fixed_amount else "",
            )

        col1, col2, col3 = st.columns(3)
        with col1:
            billing_type = st.selectbox(
                "Billing type",
                billing_types,
                index=billing_types.index(existing.billing_type.value) if existing else 0,
            )
        with col2:
            billing_interval = st.number_input(
                "Billing interval",
                min_value=1,
                step=1,
                value=existing.billing_interval if existing else 1,
            )
        with col3:
            next_billing_date = st.date_input(
                "Next billing date",
                value=existing.next_billing_date if existing else date.today(),
            )

        note = st.text_area("Note", value=(existing.note or "") if existing else "", max_chars=500)

        submitted = st.form_submit_button("💾 Save", type="primary")

    if not submitted:
        return {}

    form = {
        "name": name,
        "total_amount": total_amount,
        "currency": currency,
        "cost_mode": cost_mode,
        "split_total_users": split_total_users,
        "my_share": my_share,
        "fixed_amount": fixed_amount,
        "billing_type": billing_type,
        "billing_interval": billing_interval,
        "next_billing_date": to_date_only_string(next_billing_date),
        "note": note,
    }
    if existing:
        form["id"] = str(existing.id)
    return form


def show_field_errors(error: SubscriptionValidationError):
    st.error(error.message)
    for field, messages in error.field_errors.items():
        for message in messages:
            st.markdown(f"- **{field.replace('_', ' ').capitalize()}**: {message}")


def render_add_page(service: SubscriptionService):
    st.title("➕ Add Subscription")

    form = subscription_form("add-subscription")
    if not form:
        return

    try:
        saved = run_async(service.create_from_form(form, create_correlation_id()))
    except SubscriptionValidationError as e:
        show_field_errors(e)
        return
    except StorageError as e:
        st.error(f"Could not save: {e}")
        return

    st.success(f"✅ Saved {saved.name}. It now appears on the dashboard.")


def render_edit_page(service: SubscriptionService):
    st.title("✏️ Edit Subscription")

    editing_id = st.session_state.editing_id
    existing = run_async(service.get(UUID(editing_id)))
    if existing is None or existing.is_archived:
        st.session_state.editing_id = None
        st.warning("That subscription no longer exists.")
        return

    if st.button("← Back to dashboard"):
        st.session_state.editing_id = None
        st.rerun()

    form = subscription_form(f"edit-{editing_id}", existing)
    if not form:
        return

    try:
        run_async(service.update_from_form(form, create_correlation_id()))
    except SubscriptionValidationError as e:
        show_field_errors(e)
        return
    except (ArchivedSubscriptionError, NotFoundError, StorageError) as e:
        st.error(f"Could not save: {e}")
        return

    st.session_state.editing_id = None
    st.rerun()


# =============================================================================
# SETTINGS
# =============================================================================

def render_settings_page(audit_logger):
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")
    status = validate_all_settings()

    sections = [
        ("Application", "app"),
        ("Access gate", "basic_auth"),
        ("Google Sheets (Storage)", "google_sheets"),
    ]
    for name, key in sections:
        if key not in status:
            continue
        if status[key]:
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    app_settings = get_settings().app
    st.markdown("### Currency")
    st.markdown(f"- Display currency: **{app_settings.display_currency.value}**")
    st.markdown(f"- Effective rate: **1 USD = {app_settings.exchange_rate:,} VND**")
    st.markdown(f"- Storage backend: **{app_settings.storage_backend}**")
    st.markdown(
        f"- Access gate: **{'on' if is_auth_required() else 'off'}**"
    )

    st.markdown("---")
    st.markdown("### Recent Activity")
    if audit_logger.storage is None:
        st.info("Activity is only written to the local log.")
    else:
        try:
            events = run_async(audit_logger.storage.get_recent_events(limit=20))
        except StorageError as e:
            st.error(f"Could not load activity: {e}")
            events = []
        for event in events:
            st.markdown(
                f"- `{event.timestamp:%Y-%m-%d %H:%M}` {event.description}"
            )

    st.markdown("---")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
