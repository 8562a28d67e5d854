"""Gradio web interface for Sizwe Guide."""

import gradio as gr
import asyncio
from typing import Dict, List, Optional, Tuple
import tempfile
import shutil
from pathlib import Path
import logging

import aiofiles

from ..config import settings
from ..models.guidance import Conversation, LearnerRecommendation, MarksSubmission, StudentRecommendation
from ..models.presentation import PresentationContent
from ..tools.audio_decode import fetch_audio, load_narration
from ..tools.chat import ChatService, QUICK_QUESTIONS
from ..tools.document_summary import narrate_presentation, summarize_document
from ..tools.playback import MediaElement, PlaybackController, format_time
from ..tools.recommendations import (
    LEARNER_SUBJECTS,
    STUDENT_SUBJECTS,
    get_learner_recommendation,
    get_student_recommendation,
)
from ..tools.video_exporter import PresentationExporter


logger = logging.getLogger(__name__)


def _marks_from_inputs(subjects: List[str], values: Tuple) -> Dict[str, str]:
    """Pair form values with subject names; empty inputs become blanks."""
    marks = {}
    for subject, value in zip(subjects, values):
        if value is None or str(value).strip() == "":
            marks[subject] = ""
        else:
            number = float(value)
            marks[subject] = str(int(number)) if number.is_integer() else str(number)
    return marks


def format_learner_result(recommendation: LearnerRecommendation) -> str:
    heading = "Grade 12 Path" if recommendation.pathway.value == "grade12" else "TVET College Path"
    lines = [f"## 🎯 Recommended: {heading}", "", recommendation.reasoning, ""]
    if recommendation.recommendations:
        lines.append("### Recommendations")
        lines.extend(f"- {item}" for item in recommendation.recommendations)
        lines.append("")
    if recommendation.next_steps:
        lines.append("### Next Steps")
        lines.extend(f"{i}. {step}" for i, step in enumerate(recommendation.next_steps, 1))
    return "\n".join(lines).strip()


def format_student_result(recommendation: StudentRecommendation) -> str:
    lines = ["## 📊 Overall Assessment", "", recommendation.overall_assessment, ""]
    if recommendation.courses:
        lines.append("### 🎓 Recommended Courses")
        for course in recommendation.courses:
            lines.append(f"- **{course.name}** ({course.type.upper()}), {course.institution}")
            if course.requirements:
                lines.append(f"  - Requirements: {course.requirements}")
            if course.duration:
                lines.append(f"  - Duration: {course.duration}")
        lines.append("")
    if recommendation.careers:
        lines.append("### 💼 Career Options")
        for career in recommendation.careers:
            demand = " 🔥 Scarce skill" if career.demand == "scarce" else f" ({career.demand} demand)"
            lines.append(f"- **{career.title}**{demand}: {career.description}")
            if career.salary_range:
                lines.append(f"  - Salary: {career.salary_range}")
        lines.append("")
    if recommendation.scarce_skills:
        lines.append("### ⭐ Scarce Skills in Mpumalanga")
        lines.append(", ".join(recommendation.scarce_skills))
    return "\n".join(lines).strip()


def format_key_points(presentation: PresentationContent) -> str:
    if not presentation.key_points:
        return ""
    lines = ["### Key Takeaways:"]
    lines.extend(f"{i}. {point}" for i, point in enumerate(presentation.key_points, 1))
    return "\n".join(lines)


class SizweGuideApp:
    """Gradio application for Sizwe Guide."""

    def __init__(self, chat_service: Optional[ChatService] = None):
        """Initialize the application."""
        self.chat_service = chat_service or ChatService()
        self.conversation = Conversation()
        self.presentation: Optional[PresentationContent] = None
        self.media_element: Optional[MediaElement] = None
        self.player: Optional[PlaybackController] = None
        self.temp_dir = tempfile.mkdtemp(prefix="sizwe_")
        self.exporter = PresentationExporter(output_dir=str(Path(self.temp_dir) / "exports"))
        logger.info(f"Initialized app with temp directory: {self.temp_dir}")

    def create_interface(self) -> gr.Blocks:
        """Create the Gradio interface."""
        with gr.Blocks(title="Sizwe Guide", theme=gr.themes.Soft()) as app:
            gr.Markdown(
                """
                # 🎓 Sizwe Guide

                AI-powered educational guidance for South African learners and students.
                """
            )

            with gr.Tabs():
                # Tab 1: Learner pathway (Grade 9-11)
                with gr.TabItem("Learner Pathway"):
                    gr.Markdown(
                        "Enter your current grade and subject marks. Our AI will recommend "
                        "whether to continue to Grade 12 or explore TVET options."
                    )
                    learner_grade = gr.Dropdown(
                        choices=["9", "10", "11"],
                        label="Current Grade",
                        elem_id="learner_grade"
                    )
                    with gr.Row():
                        learner_marks = [
                            gr.Number(label=subject, minimum=0, maximum=100, precision=0)
                            for subject in LEARNER_SUBJECTS
                        ]
                    learner_btn = gr.Button("✨ Get My Recommendation", variant="primary")
                    learner_result = gr.Markdown(elem_id="learner_result")

                    learner_btn.click(
                        fn=self.get_learner_results,
                        inputs=[learner_grade] + learner_marks,
                        outputs=[learner_result]
                    )

                # Tab 2: Student pathway (Grade 11-12)
                with gr.TabItem("Student Pathway"):
                    gr.Markdown(
                        "Enter marks for exactly 7 or 8 subjects to get course, career "
                        "and scarce skills recommendations."
                    )
                    student_grade = gr.Dropdown(
                        choices=["11", "12"],
                        label="Grade",
                        elem_id="student_grade"
                    )
                    with gr.Row():
                        student_marks = [
                            gr.Number(label=subject, minimum=0, maximum=100, precision=0)
                            for subject in STUDENT_SUBJECTS
                        ]
                    student_btn = gr.Button("✨ Get Career Guidance", variant="primary")
                    student_result = gr.Markdown(elem_id="student_result")

                    student_btn.click(
                        fn=self.get_student_results,
                        inputs=[student_grade] + student_marks,
                        outputs=[student_result]
                    )

                # Tab 3: Chat
                with gr.TabItem("Sizwe Bot"):
                    chatbot = gr.Chatbot(
                        value=self.chat_history(),
                        type="messages",
                        label="Sizwe Bot - The AI Assistant",
                        elem_id="chatbot"
                    )
                    with gr.Row():
                        chat_input = gr.Textbox(
                            placeholder="Ask me about courses, careers, or education...",
                            show_label=False,
                            scale=4,
                            elem_id="chat_input"
                        )
                        send_btn = gr.Button("Send", variant="primary", scale=1)
                    gr.Examples(examples=QUICK_QUESTIONS, inputs=[chat_input])

                    send_btn.click(
                        fn=self.send_message,
                        inputs=[chat_input],
                        outputs=[chatbot, chat_input]
                    )
                    chat_input.submit(
                        fn=self.send_message,
                        inputs=[chat_input],
                        outputs=[chatbot, chat_input]
                    )

                # Tab 4: Document to narrated video
                with gr.TabItem("Document to Video"):
                    with gr.Row():
                        with gr.Column(scale=1):
                            document = gr.File(
                                label="Upload Study Document",
                                file_count="single",
                                file_types=[".txt", ".md"],
                                elem_id="document_upload"
                            )
                            process_btn = gr.Button("📄 Create Presentation", variant="primary")
                            process_log = gr.Textbox(label="Status", lines=2, interactive=False)

                        with gr.Column(scale=2):
                            presentation_view = gr.Markdown(elem_id="presentation_view")
                            narration = gr.Audio(
                                label="Narration",
                                type="filepath",
                                interactive=False,
                                elem_id="narration_audio"
                            )
                            with gr.Row():
                                mute_btn = gr.Button("🔊 Mute", size="sm")
                                transport = gr.Textbox(
                                    label="Playback",
                                    interactive=False,
                                    elem_id="transport_status"
                                )
                            key_points = gr.Markdown(elem_id="key_points")
                            export_btn = gr.Button(
                                "🎬 Download Video",
                                interactive=False,
                                elem_id="export_button"
                            )
                            video_file = gr.File(label="Video", elem_id="video_file")
                            export_log = gr.Textbox(label="Export", interactive=False)

                    process_btn.click(
                        fn=self.process_document,
                        inputs=[document],
                        outputs=[presentation_view, key_points, narration, transport, process_log, export_btn]
                    )

                    narration.play(fn=self.on_play, outputs=[transport])
                    narration.pause(fn=self.on_pause, outputs=[transport])
                    narration.stop(fn=self.on_media_ended, outputs=[transport])
                    mute_btn.click(fn=self.toggle_mute, outputs=[transport, mute_btn])

                    export_btn.click(
                        fn=self.begin_export,
                        outputs=[export_btn]
                    ).then(
                        fn=self.export_video,
                        outputs=[video_file, export_log]
                    ).then(
                        fn=self.end_export,
                        outputs=[export_btn]
                    )

        return app

    # Recommendations

    async def get_learner_results_async(self, grade: str, marks: Dict[str, str]) -> str:
        try:
            submission = MarksSubmission(grade=grade, marks=marks)
            recommendation = await get_learner_recommendation(submission)
            return format_learner_result(recommendation)
        except Exception as e:
            logger.error(f"Learner recommendation failed: {e}")
            return f"❌ Error: {e}"

    def get_learner_results(self, grade: Optional[str], *values) -> str:
        """Learner form submit (synchronous wrapper)."""
        if not grade:
            return "❌ Please select your current grade"
        marks = _marks_from_inputs(LEARNER_SUBJECTS, values)
        return asyncio.run(self.get_learner_results_async(grade, marks))

    async def get_student_results_async(self, grade: str, marks: Dict[str, str]) -> str:
        try:
            submission = MarksSubmission(grade=grade, marks=marks)
            recommendation = await get_student_recommendation(submission)
            return format_student_result(recommendation)
        except Exception as e:
            logger.error(f"Student recommendation failed: {e}")
            return f"❌ Error: {e}"

    def get_student_results(self, grade: Optional[str], *values) -> str:
        """Student form submit (synchronous wrapper)."""
        if not grade:
            return "❌ Please select your grade"
        marks = _marks_from_inputs(STUDENT_SUBJECTS, values)
        return asyncio.run(self.get_student_results_async(grade, marks))

    # Chat

    def chat_history(self) -> List[Dict[str, str]]:
        return [turn for turn in self.conversation.as_turns() if turn["role"] != "system"]

    async def send_message_async(self, text: str) -> List[Dict[str, str]]:
        try:
            await self.chat_service.reply(self.conversation, text)
        except Exception as e:
            logger.error(f"Chat error: {e}")
            gr.Warning(f"Failed to get response. Please try again. ({e})")
        return self.chat_history()

    def send_message(self, text: str) -> Tuple[List[Dict[str, str]], str]:
        """Chat submit (synchronous wrapper)."""
        if not text or not text.strip():
            return self.chat_history(), ""
        return asyncio.run(self.send_message_async(text)), ""

    # Presentation

    async def process_document_async(self, file_path: str) -> Tuple[str, str, Optional[str], str, str]:
        """Summarize, narrate and load a presentation for playback."""
        try:
            async with aiofiles.open(file_path, "rb") as f:
                content = await f.read()

            presentation = await summarize_document(content, filename=Path(file_path).name)
            presentation = await narrate_presentation(presentation)
            audio_path = await self._write_narration(presentation.audio_resource)
            self._load_presentation(presentation, audio_path)

            try:
                decoded = await load_narration(presentation.audio_resource)
                self.media_element.load_metadata(decoded.duration)
            except Exception as e:
                # Playback is non-critical: unknown duration shows as 0:00
                logger.warning(f"Could not read narration duration: {e}")
                self.media_element.fail()

            view = f"`{presentation.difficulty.value}`\n\n## {presentation.title}\n\n{presentation.summary}"
            return view, format_key_points(presentation), audio_path, self.transport_status(), "✅ Presentation ready"

        except Exception as e:
            logger.error(f"Process document error: {e}")
            return "", "", None, "", f"❌ Error: {e}"

    def process_document(self, document) -> Tuple[str, str, Optional[str], str, str, gr.update]:
        """Document upload (synchronous wrapper)."""
        if not document:
            return "", "", None, "", "❌ Please upload a document", gr.update(interactive=False)

        if isinstance(document, dict):
            file_path = document["name"]
        else:
            file_path = getattr(document, "name", str(document))
        view, points, audio_path, status, log = asyncio.run(self.process_document_async(file_path))
        return view, points, audio_path, status, log, gr.update(interactive=audio_path is not None)

    async def _write_narration(self, locator: str) -> str:
        data, suffix = await fetch_audio(locator)
        path = Path(self.temp_dir) / f"narration{suffix}"
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)
        return str(path)

    def _load_presentation(self, presentation: PresentationContent, audio_path: str) -> None:
        """Swap in a new presentation, tearing down the previous player."""
        if self.player is not None:
            self.player.detach()
        self.presentation = presentation
        self.media_element = MediaElement(src=audio_path)
        self.player = PlaybackController(self.media_element)

    # Playback

    def transport_status(self) -> str:
        if self.player is None:
            return ""
        state = self.player.state
        icon = "⏸ Playing" if state.is_playing else "▶ Paused"
        mute = " | 🔇 Muted" if state.is_muted else ""
        return (
            f"{icon} | {format_time(state.current_position)} / "
            f"{format_time(state.total_duration)} ({state.progress * 100:.0f}%){mute}"
        )

    def on_play(self) -> str:
        if self.player is not None and not self.player.state.is_playing:
            self.player.toggle()
        return self.transport_status()

    def on_pause(self) -> str:
        if self.player is not None and self.player.state.is_playing:
            self.player.toggle()
        return self.transport_status()

    def on_media_ended(self) -> str:
        if self.media_element is not None:
            self.media_element.finish()
        return self.transport_status()

    def toggle_mute(self) -> Tuple[str, gr.update]:
        if self.player is None:
            return "", gr.update()
        state = self.player.toggle_mute()
        label = "🔈 Unmute" if state.is_muted else "🔊 Mute"
        return self.transport_status(), gr.update(value=label)

    # Export

    def begin_export(self) -> gr.update:
        return gr.update(interactive=False, value="⏳ Generating video...")

    def end_export(self) -> gr.update:
        return gr.update(interactive=self.presentation is not None, value="🎬 Download Video")

    async def export_video_async(self) -> Tuple[Optional[str], str]:
        if self.presentation is None:
            return None, "❌ Create a presentation first"

        result = await self.exporter.export(self.presentation)
        if result.ok:
            return result.output_path, f"✅ {result.message}"
        if result.status == "rejected":
            return None, f"⏳ {result.message}"
        gr.Warning(result.message)
        return None, f"❌ {result.message}"

    def export_video(self) -> Tuple[Optional[str], str]:
        """Export button (synchronous wrapper)."""
        return asyncio.run(self.export_video_async())

    def cleanup(self):
        """Clean up temporary files."""
        try:
            if self.player is not None:
                self.player.detach()
            shutil.rmtree(self.temp_dir)
            logger.info("Cleaned up temporary directory")
        except Exception as e:
            logger.error(f"Cleanup failed: {e}")


def launch_app(share: bool = False, port: int = 7860):
    """Launch the Gradio application.

    Args:
        share: If True, create a public share link
        port: Port to run the server on
    """
    app_instance = SizweGuideApp()
    interface = app_instance.create_interface()

    try:
        interface.launch(
            share=share,
            server_port=port,
            server_name="0.0.0.0",
            show_error=True
        )
    finally:
        app_instance.cleanup()


if __name__ == "__main__":
    from ..utils.logging_config import configure_logging

    configure_logging(level=settings.log_level)
    launch_app(share=False)
