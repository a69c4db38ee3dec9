"""
Command line interface: sign in, compose, send and manage Gmail drafts.

Usage:
    gmail-composer login
    gmail-composer send --to a@b.com --subject Hi --body "<p>Hello</p>"
    gmail-composer drafts
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import click

from .auth import CredentialLifecycleManager
from .codec import decode_draft
from .config import LOG_LEVEL, SESSION_FILE
from .errors import GmailComposerError
from .gateway import MailGateway
from .models import Attachment, ComposedEmail
from .oauth import GoogleAuthorizer
from .parsing import format_draft_summary
from .profile import ProfileResolver
from .store import FileSessionStore

logger = logging.getLogger(__name__)

_FIELD_LABELS = {"recipient": "To", "subject": "Subject", "body": "Body"}


def build_session(session_file: Path) -> CredentialLifecycleManager:
    """Wire a session manager with the file store and Google flows."""
    return CredentialLifecycleManager(
        store=FileSessionStore(session_file),
        authorizer=GoogleAuthorizer(),
        profile_resolver=ProfileResolver(),
    )


def _run(coro):
    try:
        return asyncio.run(coro)
    except GmailComposerError as e:
        raise click.ClickException(str(e))


async def _authorized(session: CredentialLifecycleManager, action):
    """Restore the session, run the action, then drop the renewal timer."""
    try:
        await session.restore_session()
        if not session.is_authorized:
            raise click.ClickException("Not signed in. Run 'gmail-composer login' first.")
        return await action(MailGateway(session))
    finally:
        session.close()


def _read_email(to, subject, body, body_file, attach, draft_id) -> ComposedEmail:
    if body_file:
        body = Path(body_file).read_text(encoding="utf-8")
    return ComposedEmail(
        id=draft_id,
        recipient=to or "",
        subject=subject or "",
        body_html=body or "",
        attachments=[Attachment.from_path(path) for path in attach],
    )


# =============================================================================
# COMMANDS
# =============================================================================

@click.group()
@click.option(
    "--session-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=SESSION_FILE,
    show_default=True,
    help="Where the signed-in session is kept.",
)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
@click.pass_context
def cli(ctx: click.Context, session_file: Path, verbose: bool) -> None:
    """Compose and send Gmail messages with a self-renewing sign-in."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    ctx.obj = build_session(session_file)


@cli.command()
@click.pass_obj
def login(session: CredentialLifecycleManager) -> None:
    """Sign in with Google (opens a browser)."""
    async def run():
        try:
            await session.restore_session()
            if session.is_authorized:
                return session.identity, False
            return await session.sign_in(), True
        finally:
            session.close()

    identity, fresh = _run(run())
    prefix = "Logged in as" if fresh else "Already logged in as"
    click.echo(f"{prefix}: {identity.display_name} ({identity.email_address})")


@cli.command()
@click.pass_obj
def logout(session: CredentialLifecycleManager) -> None:
    """Sign out and revoke the stored token."""
    async def run():
        try:
            await session.restore_session()
        except GmailComposerError as e:
            logger.debug(f"Restore before sign-out failed: {e}")
        await session.sign_out()

    _run(run())
    click.echo("Logged out")


@cli.command()
@click.pass_obj
def whoami(session: CredentialLifecycleManager) -> None:
    """Show the signed-in account."""
    async def run(gateway):
        return session.identity

    identity = _run(_authorized(session, run))
    click.echo(f"{identity.display_name} <{identity.email_address}>")
    if identity.avatar_url:
        click.echo(identity.avatar_url)


@cli.command()
@click.pass_obj
def drafts(session: CredentialLifecycleManager) -> None:
    """List drafts from the connected Gmail account."""
    async def run(gateway):
        return await gateway.list_drafts()

    draft_list = _run(_authorized(session, run))
    if not draft_list:
        click.echo("You have no drafts in your Gmail account.")
        return

    for draft in draft_list:
        summary = format_draft_summary(draft)
        click.echo(f"{summary['id']}  To: {summary['to']}")
        click.echo(f"  Subject: {summary['subject']}")
        if summary["snippet"]:
            click.echo(f"  {summary['snippet']}")


@cli.command()
@click.argument("draft_id")
@click.pass_obj
def show(session: CredentialLifecycleManager, draft_id: str) -> None:
    """Load a draft for editing and print its fields."""
    async def run(gateway):
        return decode_draft(await gateway.get_draft(draft_id))

    email = _run(_authorized(session, run))
    click.echo(f"Draft: {email.id}")
    click.echo(f"To: {email.recipient}")
    click.echo(f"Subject: {email.subject}")
    click.echo("")
    click.echo(email.body_html)


def _compose_options(fn):
    options = [
        click.option("--to", "to", help="Recipient address."),
        click.option("--subject", help="Subject line."),
        click.option("--body", help="HTML body."),
        click.option(
            "--body-file",
            type=click.Path(exists=True, dir_okay=False),
            help="Read the HTML body from a file.",
        ),
        click.option(
            "--attach",
            multiple=True,
            type=click.Path(exists=True, dir_okay=False),
            help="File to attach (repeatable).",
        ),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


@cli.command()
@_compose_options
@click.pass_obj
def send(session, to, subject, body, body_file, attach) -> None:
    """Send an email."""
    email = _read_email(to, subject, body, body_file, attach, None)
    missing = email.missing_fields()
    if missing:
        fields = ", ".join(_FIELD_LABELS[name] for name in missing)
        raise click.UsageError(f"Please fill in the {fields} field(s).")

    async def run(gateway):
        return await gateway.send(email)

    result = _run(_authorized(session, run))
    click.echo(f"Email sent successfully! (id: {result.get('id', '')})")


@cli.command("save-draft")
@_compose_options
@click.option("--draft-id", help="Update this existing draft instead of creating one.")
@click.pass_obj
def save_draft(session, to, subject, body, body_file, attach, draft_id: Optional[str]) -> None:
    """Create or update a draft."""
    email = _read_email(to, subject, body, body_file, attach, draft_id)
    if email.is_blank():
        raise click.UsageError("Cannot save an empty draft.")

    async def run(gateway):
        return await gateway.save_draft(email)

    _run(_authorized(session, run))
    click.echo(f"Draft saved successfully! (id: {email.id})")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
