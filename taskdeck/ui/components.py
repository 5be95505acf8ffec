"""
TaskDeck UI components — task form, task list, header controls.
"""

import reflex as rx

from taskdeck.ui.state import FORM_ANCHOR, AuthState, TaskState

IMAGE_UPLOAD_ID = "image_upload"
VIDEO_UPLOAD_ID = "video_upload"


def page_shell(content: rx.Component) -> rx.Component:
    """Centered card on a themed background."""
    return rx.center(
        rx.card(
            content,
            width="90%",
            max_width="560px",
            padding="6",
        ),
        min_height="100vh",
        padding_y="8",
        background=rx.cond(
            TaskState.dark_mode,
            "linear-gradient(135deg, #0f2027, #203a43, #2c5364)",
            "linear-gradient(135deg, #f5f7fa, #e4ecf5)",
        ),
        color=rx.cond(TaskState.dark_mode, "white", "#111827"),
    )


def top_controls() -> rx.Component:
    """Theme toggle and sign-out."""
    return rx.hstack(
        rx.button(
            rx.cond(TaskState.dark_mode, "☀️ Light", "🌙 Dark"),
            size="1",
            variant="soft",
            on_click=TaskState.toggle_theme,
        ),
        rx.spacer(),
        rx.text(AuthState.email, size="2", color="gray"),
        rx.button(
            "Sign Out",
            size="1",
            color_scheme="red",
            on_click=AuthState.sign_out,
        ),
        width="100%",
        align="center",
    )


def task_form() -> rx.Component:
    """Create / edit form with attachment pickers."""
    return rx.form(
        rx.vstack(
            rx.input(
                placeholder="Task Title",
                name="title",
                value=TaskState.title,
                on_change=TaskState.set_title,
                width="100%",
            ),
            rx.text_area(
                placeholder="Task Description",
                name="description",
                value=TaskState.description,
                on_change=TaskState.set_description,
                width="100%",
            ),
            _file_picker("Upload Image:", IMAGE_UPLOAD_ID, {"image/*": []}, TaskState.upload_image),
            _file_picker("Upload Video:", VIDEO_UPLOAD_ID, {"video/*": []}, TaskState.upload_video),
            rx.cond(
                TaskState.uploading,
                rx.text("Uploading...", size="2", color="gray"),
            ),
            rx.cond(
                TaskState.preview_image != "",
                rx.image(src=TaskState.preview_image, alt="preview", width="100%", border_radius="8px"),
            ),
            rx.cond(
                TaskState.preview_video != "",
                rx.video(url=TaskState.preview_video, controls=True, width="100%"),
            ),
            rx.button(
                TaskState.submit_label,
                type="submit",
                width="100%",
                color_scheme=rx.cond(TaskState.is_editing, "blue", "green"),
            ),
            spacing="3",
            width="100%",
        ),
        on_submit=TaskState.submit,
        reset_on_submit=False,
        id=FORM_ANCHOR,
        width="100%",
    )


def _file_picker(label: str, upload_id: str, accept: dict, handler) -> rx.Component:
    return rx.vstack(
        rx.text(label, size="2", weight="bold"),
        rx.upload(
            rx.text("Drop a file here or click to browse", size="2"),
            id=upload_id,
            accept=accept,
            max_files=1,
            multiple=False,
            on_drop=handler(rx.upload_files(upload_id=upload_id)),
            border="1px dashed",
            padding="12px",
            width="100%",
            text_align="center",
        ),
        spacing="1",
        width="100%",
    )


def task_list() -> rx.Component:
    """One card per cached task."""
    return rx.vstack(
        rx.foreach(TaskState.tasks, task_card),
        spacing="3",
        width="100%",
    )


def task_card(task: dict) -> rx.Component:
    return rx.card(
        rx.vstack(
            rx.heading(task["title"], size="4"),
            rx.text(task["description"]),
            rx.cond(
                task["image_url"],
                rx.image(src=task["image_url"], alt="task", width="100%", border_radius="8px"),
            ),
            rx.cond(
                task["video_url"],
                rx.video(url=task["video_url"], controls=True, width="100%"),
            ),
            rx.hstack(
                rx.button(
                    "Edit",
                    flex="1",
                    color_scheme="blue",
                    on_click=TaskState.edit_task(task["id"]),
                ),
                rx.button(
                    "Delete",
                    flex="1",
                    color_scheme="red",
                    on_click=TaskState.delete_task(task["id"]),
                ),
                width="100%",
                spacing="2",
            ),
            spacing="2",
            width="100%",
        ),
        width="100%",
    )
