"""
Streamlit Frontend for the VGLA Assessment

A single-user page that walks through the 60-question assessment,
shows the resulting combination type and keeps track of retests.

DESIGN PRINCIPLES:
1. One question at a time, with back/forward navigation
2. Progress is saved after every answer
3. Saved progress is offered for resumption, never silently restored
4. Clear error messages when something cannot be saved

All engine state lives in the AssessmentFlow; the page only renders it.
"""

import asyncio
import logging

import streamlit as st

from vgla_engine.config import get_settings
from vgla_engine.engine import (
    IncompleteAssessmentError,
    ProfileTracker,
    ResumeReason,
    SessionStatus,
    question_bank,
)
from vgla_engine.models.assessment import Phase, VGLAResult
from vgla_engine.orchestrator import AssessmentFlow, create_app_components
from vgla_engine.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="VGLA Assessment",
    page_icon="🧭",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .result-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
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
def get_flow() -> AssessmentFlow:
    """Get or create the assessment flow (cached)."""
    return create_app_components()


def main():
    """Main application entry point."""
    logging.basicConfig(level=get_settings().app.log_level, format="%(message)s")
    flow = get_flow()
    user_id = get_settings().assessment.default_user_id

    st.sidebar.title("🧭 VGLA")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📝 Assessment", "👤 Profile", "⚙️ Settings"],
        index=0,
    )

    if page == "📝 Assessment":
        render_assessment_page(flow, user_id)
    elif page == "👤 Profile":
        render_profile_page(flow, user_id)
    else:
        render_settings_page()


def render_assessment_page(flow: AssessmentFlow, user_id: str):
    st.title("📝 VGLA Assessment")

    if "last_result" not in st.session_state:
        st.session_state.last_result = None

    if st.session_state.last_result is not None:
        render_result(st.session_state.last_result)
        if st.button("🔁 Take the Assessment Again"):
            st.session_state.last_result = None
            flow.session.reset()
            st.rerun()
        return

    session = flow.session
    if session.status == SessionStatus.NOT_STARTED:
        render_start(flow, user_id)
        return

    render_question(flow)


def render_start(flow: AssessmentFlow, user_id: str):
    decision = run_async(flow.check_for_incomplete_test(user_id))

    if decision.should_resume:
        snapshot = decision.snapshot
        st.info(
            f"You have saved progress: {snapshot.answered_count} of 60 questions answered."
        )
        col1, col2 = st.columns(2)
        with col1:
            if st.button("▶️ Resume", type="primary"):
                run_async(flow.resume_test(user_id, snapshot))
                st.rerun()
        with col2:
            if st.button("🆕 Start Over"):
                start_new(flow, user_id)
        return

    if decision.reason in (ResumeReason.STALE, ResumeReason.INVALID):
        st.warning("Your earlier progress could not be restored, so a new test will start.")

    st.markdown(
        "Answer 60 short questions: first what you **like** most in each "
        "situation, then what you **dislike** most."
    )
    if st.button("🚀 Start Assessment", type="primary"):
        start_new(flow, user_id)


def start_new(flow: AssessmentFlow, user_id: str):
    try:
        run_async(flow.start_new_test(user_id))
    except StorageError as e:
        st.error(f"Could not save progress: {e}")
        return
    st.rerun()


def render_question(flow: AssessmentFlow):
    session = flow.session
    question = session.current_question
    phase_progress = session.phase_progress

    phase_label = "Like" if phase_progress.phase == Phase.LIKE else "Dislike"
    st.progress(session.progress)
    st.caption(
        f"{phase_label} phase · question {phase_progress.current + 1} of {phase_progress.total}"
    )
    st.subheader(question.text)

    current = session.current_response
    for option in question_bank.get_options():
        is_current = current is not None and current.selected_option == option
        label = f"✅ {option}" if is_current else option
        if st.button(label, key=f"option-{question.id}-{option}"):
            try:
                result = run_async(flow.select_option(option))
            except IncompleteAssessmentError as e:
                st.error(
                    "Some questions are still unanswered: "
                    + ", ".join(str(i) for i in e.missing_question_ids)
                )
                return
            except StorageError as e:
                st.error(f"Your answer was recorded but could not be saved: {e}")
                return
            if result is not None:
                st.session_state.last_result = result
            st.rerun()

    col1, col2, col3 = st.columns([1, 1, 2])
    with col1:
        if st.button("⬅️ Back", disabled=not session.can_go_to_previous_question):
            run_async(flow.previous_question())
            st.rerun()
    with col2:
        if st.button("➡️ Forward", disabled=not session.can_go_to_next_question):
            run_async(flow.next_question())
            st.rerun()
    with col3:
        if st.button("🗑️ Abandon Test"):
            run_async(flow.abandon_test())
            st.rerun()


def render_result(result: VGLAResult):
    st.markdown(f"""
    <div class="result-box">
        <h3>Your combination type</h3>
        <p class="big-number">{result.combination_type.value}</p>
        <p>Primary: {result.primary_type.label} · Secondary: {result.secondary_type.label}
        · Blind spot: {result.blind_spot.label}</p>
    </div>
    """, unsafe_allow_html=True)

    st.markdown("### Scores")
    cols = st.columns(4)
    for col, (dimension, value) in zip(cols, result.radar_data()):
        with col:
            st.metric(
                dimension.label,
                result.scores[dimension],
                help=f"{value:.0%} of the maximum",
            )

    with st.expander("🔍 Like / dislike breakdown"):
        st.table({
            "Dimension": [d.label for d in result.order],
            "Like": [result.score.like[d] for d in result.order],
            "Dislike": [result.score.dislike[d] for d in result.order],
            "Total": [result.score.total[d] for d in result.order],
        })


def render_profile_page(flow: AssessmentFlow, user_id: str):
    st.title("👤 Your Profile")

    try:
        retake_due = run_async(flow.check_retake(user_id))
        profile = flow.profile if flow.profile and flow.profile.user_id == user_id else None
    except StorageError as e:
        st.error(f"Could not load your profile: {e}")
        return

    if profile is None:
        st.info("Complete the assessment to create your profile.")
        return

    if retake_due:
        st.warning("It has been three months since your last assessment. Time for a retest!")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Current type", profile.current_combination_type.value)
    with col2:
        st.metric("Assessments taken", profile.assessment_count)
    with col3:
        st.metric("Next retest", profile.next_test_date.strftime("%d %b %Y"))

    if profile.has_type_changed and profile.previous_combination_type:
        st.info(
            f"Your type changed from {profile.previous_combination_type.value} "
            f"to {profile.current_combination_type.value}."
        )

    st.markdown("---")
    st.markdown("### History")
    stability = ProfileTracker.get_type_stability(profile.history)
    most_common = ProfileTracker.get_most_common_type(profile.history)
    st.markdown(
        f"Stability: **{stability:.0%}** · Most common type: "
        f"**{most_common.value if most_common else '-'}**"
    )
    st.table({
        "Date": [r.test_date.strftime("%d %b %Y") for r in profile.history],
        "Type": [r.combination_type.value for r in profile.history],
        "Primary": [r.primary_type.label for r in profile.history],
        "Secondary": [r.secondary_type.label for r in profile.history],
    })


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    from vgla_engine.config import validate_all_settings

    status = validate_all_settings()

    sections = [
        ("Assessment", "assessment"),
        ("Google Sheets (Storage)", "google_sheets"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "Set `VGLA_STORAGE_BACKEND=google_sheets` and the `GOOGLE_SHEETS_*` "
        "variables in a `.env` file to keep your results in Google Sheets."
    )


if __name__ == "__main__":
    main()
