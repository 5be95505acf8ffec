"""
TaskDeck pages.

Routes:
    /      → task manager (behind the session gate)
    /auth  → sign in
"""

import reflex as rx

from taskdeck.ui.components import page_shell, task_form, task_list, top_controls
from taskdeck.ui.state import AuthState, TaskState


def index_page() -> rx.Component:
    """Task manager. Renders nothing until the session is known to exist."""
    return rx.box(
        rx.cond(
            AuthState.is_present,
            page_shell(
                rx.vstack(
                    top_controls(),
                    rx.heading(TaskState.heading, size="6"),
                    task_form(),
                    rx.divider(),
                    task_list(),
                    spacing="4",
                    width="100%",
                ),
            ),
        ),
        on_mount=AuthState.check_session,
        on_unmount=AuthState.release_session,
    )


def auth_page() -> rx.Component:
    """Email/password sign-in."""
    return page_shell(
        rx.vstack(
            rx.heading("TaskDeck", size="6", text_align="center"),
            rx.text("Sign in to manage your tasks", color="gray", text_align="center"),
            rx.divider(),
            rx.form(
                rx.vstack(
                    rx.text("Email", size="2", weight="bold"),
                    rx.input(
                        placeholder="you@example.com",
                        name="email",
                        type="email",
                        required=True,
                        size="3",
                    ),
                    rx.text("Password", size="2", weight="bold"),
                    rx.input(
                        placeholder="••••••••",
                        name="password",
                        type="password",
                        required=True,
                        size="3",
                    ),
                    rx.cond(
                        AuthState.auth_error != "",
                        rx.callout(
                            AuthState.auth_error,
                            icon="triangle_alert",
                            color_scheme="red",
                            size="1",
                        ),
                    ),
                    rx.button(
                        "Sign In",
                        type="submit",
                        size="3",
                        width="100%",
                        loading=AuthState.is_loading,
                    ),
                    spacing="3",
                    width="100%",
                ),
                on_submit=AuthState.sign_in,
                width="100%",
            ),
            spacing="4",
            width="100%",
        ),
    )
