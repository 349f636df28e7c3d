"""Command line front end for the chatbot client.

Every command builds a ChatClient from the loaded settings, restores the
persisted conversation (and session, where needed), runs one core operation
and prints the result. Failures print a readable message and exit with 1.

Run with: chatbot --help
"""

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import typer

from chatcore.client import ChatClient
from chatcore.config import ClientSettings, load_settings
from chatcore.conversation.models import SendOutcome
from chatcore.errors import ChatClientError, NoTokenError
from chatcore.utils.logger import LoggerManager

T = TypeVar("T")

app = typer.Typer(help="Chat with the assistant from the terminal.")
history_app = typer.Typer(help="List and delete past conversations.")
app.add_typer(history_app, name="history")

cli_logger = LoggerManager.get_logger("cli")

_state = {"settings": None}


def build_client(settings: ClientSettings) -> ChatClient:
    """Factory for the ChatClient used by every command."""
    return ChatClient.from_settings(settings)


def _settings() -> ClientSettings:
    if _state["settings"] is None:
        _state["settings"] = load_settings()
    return _state["settings"]


def _run(operation: Callable[[ChatClient], Awaitable[T]], restore_session: bool = True) -> T:
    """Run one async operation against a freshly started client."""

    async def runner() -> T:
        async with build_client(_settings()) as client:
            await client.startup(validate_session=restore_session)
            return await operation(client)

    try:
        return asyncio.run(runner())
    except NoTokenError:
        typer.echo("❌ Not logged in. Run `chatbot login` first.")
        raise typer.Exit(code=1)
    except ChatClientError as e:
        cli_logger.error(f"Command failed: {e}")
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)


def _print_outcome(outcome: SendOutcome) -> None:
    if outcome.rejected:
        typer.echo("Nothing to send.")
    elif outcome.success:
        typer.echo(f"assistant> {outcome.reply.text}")
    else:
        typer.echo(f"❌ {outcome.error}")


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None, "--config", help="YAML config file (default: config/client.yaml)."
    ),
):
    """Load settings once for the invoked command."""
    settings = load_settings(config)
    LoggerManager.configure(level=settings.log_level, use_json=settings.log_json)
    _state["settings"] = settings


@app.command()
def login(
    email: str = typer.Option(..., prompt=True, help="Account email."),
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Account password."),
):
    """Log in and remember the session."""
    session = _run(lambda client: client.sessions.login(email, password), restore_session=False)
    username = session.user.username if session.user else email
    typer.echo(f"✅ Logged in as {username}")


@app.command()
def logout():
    """Forget the stored session."""
    _run(lambda client: client.sessions.logout(), restore_session=False)
    typer.echo("Logged out.")


@app.command()
def whoami():
    """Show the logged-in user."""

    async def operation(client: ChatClient):
        session = await client.sessions.restore()
        if session.user is None:
            raise NoTokenError()
        return session.user

    user = _run(operation, restore_session=False)
    typer.echo(f"{user.username} <{user.email or 'unknown email'}> (id {user.id})")


@app.command("delete-account")
def delete_account(
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt."),
):
    """Delete the account on the server and log out."""
    if not yes:
        typer.confirm("Delete your account permanently?", abort=True)
    _run(lambda client: client.sessions.delete_account())
    typer.echo("Account deleted.")


@app.command()
def send(message: str = typer.Argument(..., help="Message to send.")):
    """Send one message in the current conversation."""
    outcome = _run(lambda client: client.send_message(message))
    _print_outcome(outcome)
    if not outcome.success:
        raise typer.Exit(code=1)


@app.command()
def chat():
    """Interactive chat. `/new` starts a new conversation, `/quit` exits."""

    async def operation(client: ChatClient) -> None:
        client.sessions.require_token()
        typer.echo("Type a message. /new starts a new conversation, /quit exits.")
        while True:
            text = await asyncio.to_thread(typer.prompt, "you", default="", show_default=False)
            command = text.strip().lower()
            if command in ("/quit", "/exit"):
                return
            if command == "/new":
                await client.start_new_chat()
                typer.echo("Started a new conversation.")
                continue
            _print_outcome(await client.send_message(text))

    _run(operation)


@app.command("new-chat")
def new_chat():
    """Start a new conversation on the next message."""
    _run(lambda client: client.start_new_chat(), restore_session=False)
    typer.echo("Started a new conversation.")


@history_app.command("list")
def history_list():
    """List past conversations."""
    entries = _run(lambda client: client.fetch_history())
    if not entries:
        typer.echo("No conversations yet.")
        return
    for entry in entries:
        typer.echo(f"{entry.history_id:>6}  {entry.preview}")


@history_app.command("delete")
def history_delete(
    history_id: int = typer.Argument(..., help="Conversation id to delete."),
):
    """Delete one past conversation."""

    async def operation(client: ChatClient) -> None:
        await client.fetch_history()
        await client.delete_history_entry(history_id)

    _run(operation)
    typer.echo(f"Deleted conversation {history_id}.")


if __name__ == "__main__":
    app()
