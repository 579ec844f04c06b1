"""
TruthLens Streamlit UI
A demo interface for the misinformation analysis API.
"""

from typing import Any, Dict

import streamlit as st

from truthlens.client import (
    TruthLensClient,
    TruthLensClientError,
    credibility_color,
    credibility_label,
    format_confidence,
    issue_type_display_name,
    risk_level_color,
)


st.set_page_config(
    page_title="TruthLens Demo",
    page_icon="🔍",
    layout="wide",
)

RISK_ICONS = {"green": "🟢", "yellow": "🟡", "orange": "🟠", "red": "🔴", "gray": "⚪"}


# ---------- Helpers ----------


def render_analysis(result: Dict[str, Any]):
    """Render an /analyze response (or a stored analysis record)."""
    analysis = result.get("analysis") or {}
    st.subheader("🔎 Result")

    degraded = result.get("degraded") or []
    if degraded:
        st.warning(
            "Some steps were produced by the offline fallback: " + ", ".join(degraded)
        )

    risk_level = analysis.get("riskLevel", "N/A")
    score = analysis.get("credibilityScore", 0)

    col1, col2, col3 = st.columns(3)
    with col1:
        icon = RISK_ICONS[risk_level_color(risk_level)]
        st.metric("Risk Level", f"{icon} {risk_level.upper()}")
    with col2:
        st.metric("Credibility", f"{RISK_ICONS[credibility_color(score)]} {score}/100")
        st.caption(credibility_label(score))
    with col3:
        st.metric("Issues Found", len(analysis.get("issues") or []))

    st.markdown("**📝 Summary**")
    st.info(analysis.get("summary", "No summary provided."))

    col_left, col_right = st.columns(2)

    with col_left:
        st.markdown("**🚩 Issues**")
        for issue in analysis.get("issues") or []:
            st.write(
                f"- **{issue_type_display_name(issue.get('type', ''))}** "
                f"({issue.get('severity')}, {format_confidence(issue.get('confidence', 0))})"
            )
            st.caption(f"  {issue.get('description', '')}")

    with col_right:
        recommendations = analysis.get("recommendations") or []
        if recommendations:
            st.markdown("**💡 Recommendations**")
            for rec in recommendations:
                st.markdown(f"- {rec}")

        sources = analysis.get("sources") or []
        if sources:
            st.markdown("**📚 Sources**")
            for source in sources:
                st.write(f"- [{source.get('domain')}]({source.get('url')}) ({source.get('credibility')}%)")

    profile = analysis.get("attackerProfile")
    if profile:
        with st.expander("🎭 Attacker Profile"):
            st.write(f"**Intent:** {profile.get('intent')}")
            st.write(f"**Motivation:** {profile.get('motivation')}")
            st.write(f"**Methodology:** {profile.get('methodology')}")
            st.write(f"**Target audience:** {profile.get('targetAudience')}")

    story = result.get("storyPrompt")
    if story:
        with st.expander("🎬 Story Prompt"):
            st.write(f"**Scenario:** {story.get('scenario')}")
            st.write(f"**Characters:** {', '.join(story.get('characters') or [])}")
            st.write(f"**Timeline:** {story.get('timeline')}")
            st.write(f"**Consequences:** {story.get('consequences')}")
            st.write(f"**Prevention:** {story.get('prevention')}")

    report = result.get("detailedReport")
    if report:
        with st.expander("📄 Detailed Report"):
            st.markdown(report)

    with st.expander("🔧 Raw JSON response"):
        st.json(result)


# ---------- Sidebar config ----------


st.sidebar.title("⚙️ Settings")

base_url = st.sidebar.text_input(
    "Backend URL",
    value="http://127.0.0.1:8000/make-server-76a6fe9f",
    help="TruthLens server base URL, including the API prefix.",
)

anon_key = st.sidebar.text_input(
    "Anon Key (optional)",
    type="password",
    help="Sent as Authorization: Bearer <key> when the server requires it.",
)

client = TruthLensClient(base_url, anon_key=anon_key)

st.sidebar.markdown("---")

# Status check
if st.sidebar.button("🔌 Check Connection"):
    try:
        health = client.health()
        st.sidebar.success("✅ Backend is online!")
        if not health.get("apiKeyConfigured"):
            st.sidebar.warning("Google API key not configured: analyses use the offline fallback.")
    except TruthLensClientError as e:
        st.sidebar.error(f"❌ Cannot connect: {e.message}")


# ---------- Main UI ----------


st.title("🔍 TruthLens")
st.markdown("**AI-Assisted Misinformation Detection Demo**")
st.markdown("---")

tabs = st.tabs(["📝 Analyze", "🖼️ Media", "🌐 Translate", "🎙️ Speech", "🕒 Recent"])


# --- ANALYZE TAB ---
with tabs[0]:
    st.header("Content Credibility Analysis")
    st.markdown("Paste a post, message or article to check it for misinformation signals.")

    text = st.text_area(
        "Content to analyze",
        height=200,
        placeholder="Example: BREAKING!!! Scientists CONFIRM that drinking hot water cures all viruses. SHARE NOW!",
    )
    context = st.text_input("Optional context (where did you see it?)", key="analyze_context")

    if st.button("🔍 Analyze", key="analyze_text", type="primary"):
        if not text.strip():
            st.warning("Please enter some text.")
        else:
            with st.spinner("Analyzing..."):
                try:
                    render_analysis(client.analyze_content(text, "text", context or None))
                except TruthLensClientError as e:
                    st.error(f"API Error: {e.message}")


# --- MEDIA TAB ---
with tabs[1]:
    st.header("Media Verification")
    st.markdown("Describe an image, video or audio clip to check it for manipulation.")

    media_type = st.selectbox("Media type", options=["image", "video", "audio"])
    description = st.text_area(
        "Describe the media (caption, transcript, claims made)",
        height=150,
        key="media_description",
    )

    if st.button("🔍 Verify Media", key="analyze_media", type="primary"):
        if not description.strip():
            st.warning("Please describe the media.")
        else:
            with st.spinner("Verifying..."):
                try:
                    render_analysis(client.analyze_content(description, media_type))
                except TruthLensClientError as e:
                    st.error(f"API Error: {e.message}")


# --- TRANSLATE TAB ---
with tabs[2]:
    st.header("Translation")

    to_translate = st.text_area("Text to translate", height=120, key="translate_text")
    target = st.text_input("Target language code", value="en")

    if st.button("🌐 Translate", key="translate", type="primary"):
        if not to_translate.strip():
            st.warning("Please enter some text.")
        else:
            try:
                result = client.translate(to_translate, target)
                st.success(result.get("translatedText", ""))
                st.caption(f"Detected language: {result.get('detectedLanguage') or 'unknown'}")
            except TruthLensClientError as e:
                st.error(f"API Error: {e.message}")


# --- SPEECH TAB ---
with tabs[3]:
    st.header("Speech to Text")
    st.markdown("Transcribe a recording, then analyze the transcript.")

    audio_file = st.file_uploader("Upload an audio file (.webm, .ogg)", type=["webm", "ogg"])

    if audio_file is not None:
        st.audio(audio_file)

    if st.button("🎙️ Transcribe", key="transcribe", type="primary"):
        if audio_file is None:
            st.warning("Please upload an audio file.")
        else:
            with st.spinner("Transcribing..."):
                try:
                    result = client.transcribe_audio(audio_file.getvalue())
                    st.text_area("Transcript", result.get("transcript", ""), height=150, disabled=True)
                    st.caption(f"Confidence: {format_confidence(result.get('confidence', 0) * 100)}")
                except TruthLensClientError as e:
                    st.error(f"API Error: {e.message}")


# --- RECENT TAB ---
with tabs[4]:
    st.header("Recent Analyses")

    if st.button("🔄 Refresh", key="refresh_recent"):
        recent = client.get_recent_analyses()
        if not recent:
            st.info("No analyses yet.")
        for record in recent:
            analysis = record.get("analysis") or {}
            label = (
                f"{record.get('timestamp', '')[:19]} • {record.get('contentType')} • "
                f"{analysis.get('riskLevel', 'N/A').upper()} • {analysis.get('credibilityScore', 0)}/100"
            )
            st.markdown(f"#### {label}")
            st.write(record.get("originalContent", ""))
            render_analysis(record)
            st.divider()


# --- Footer ---
st.markdown("---")
st.markdown(
    "<div style='text-align: center; color: gray;'>"
    "TruthLens v0.1.0 • AI-Assisted Misinformation Detection"
    "</div>",
    unsafe_allow_html=True,
)
