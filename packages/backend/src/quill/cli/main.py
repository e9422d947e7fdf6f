"""Quill CLI — log in, publish, and manage posts from the terminal.

Usage:
    quill register me@example.com                # Create account (password prompted)
    quill login me@example.com                   # Log in, store the token
    quill whoami                                 # Show the logged-in account
    quill refresh                                # Swap the token for a fresh one
    quill logout                                 # Forget the stored token
    quill posts list [--author 3] [--mine]       # Newest first
    quill posts show 12                          # Full post
    quill posts create -t "Title" -c "Body..."   # Publish
    quill posts edit 12 -t "New" -c "Body..."    # Owner only
    quill posts delete 12                        # Owner only
    quill posts stats                            # Site-wide counters
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from pathlib import Path
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("QUILL_API_URL", DEFAULT_API_URL).rstrip("/")


def _token_path() -> Path:
    default = Path.home() / ".config" / "quill" / "token"
    return Path(os.environ.get("QUILL_TOKEN_FILE", str(default)))


def load_token() -> Optional[str]:
    path = _token_path()
    if not path.exists():
        return None
    token = path.read_text().strip()
    return token or None


def save_token(token: str) -> None:
    path = _token_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(token)
    path.chmod(0o600)


def clear_token() -> None:
    _token_path().unlink(missing_ok=True)


def _transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport override point (None = real network)."""
    return None


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Quill API, with the stored token."""
    headers = {}
    token = load_token()
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return httpx.AsyncClient(
        base_url=f"{_api_url()}/api/v1",
        timeout=30.0,
        headers=headers,
        transport=_transport(),
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No running loop: normal CLI invocation
        return asyncio.run(coro)
    else:
        # Already inside an event loop (e.g. test runner), so run in a thread
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _fail(message: str) -> None:
    click.secho(f"error: {message}", fg="red", err=True)
    sys.exit(1)


def _check(r: httpx.Response) -> dict:
    """Return the JSON body of a successful response, or exit with its error.

    A 401 means the stored token is no good any more (expired, forged, or
    the account is gone), so it is dropped.
    """
    if r.status_code < 400:
        return r.json() if r.content else {}

    try:
        body = r.json()
        message = body.get("message") or body.get("error") or r.text
    except ValueError:
        message = r.text or f"HTTP {r.status_code}"

    if r.status_code == 401 and load_token():
        clear_token()
        message = f"{message} (stored token cleared, run `quill login`)"
    _fail(message)


async def _send(method: str, url: str, **kwargs) -> httpx.Response:
    async with _client() as c:
        return await c.request(method, url, **kwargs)


def _call(method: str, url: str, **kwargs) -> dict:
    """Send one request and return its JSON body (exits on any failure)."""
    try:
        r = _run(_send(method, url, **kwargs))
    except httpx.TransportError as e:
        _fail(f"could not reach {_api_url()}: {e}")
    return _check(r)


def _print_posts(posts: list[dict]) -> None:
    if not posts:
        click.echo("No posts found.")
        return
    header = f"{'ID':6s}  {'Author':28s}  {'Created':19s}  Title"
    click.secho(header, bold=True)
    click.echo("-" * (len(header) + 20))
    for p in posts:
        mark = click.style("*", fg="green") if p.get("is_owner") else " "
        created = str(p.get("created_at", ""))[:19].replace("T", " ")
        author = str(p.get("owner_email") or p.get("owner_id"))[:28]
        click.echo(f"{p['id']:<6d}  {author:28s}  {created:19s} {mark}{p['title'][:60]}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="quill")
def main():
    """Quill — publish and manage posts on a Quill server."""


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.password_option("--password", "-p", help="Account password (prompted if omitted)")
def register(email: str, password: str):
    """Create an account and log in with it."""
    data = _call("POST", "/auth/register", json={"email": email, "password": password})
    save_token(data["token"])
    click.secho(f"Registered {data['user']['email']} (id {data['user']['id']})", fg="green")


@main.command()
@click.argument("email")
@click.option("--password", "-p", prompt=True, hide_input=True, help="Account password")
def login(email: str, password: str):
    """Log in and store the bearer token."""
    data = _call("POST", "/auth/login", json={"email": email, "password": password})
    save_token(data["token"])
    click.secho(f"Logged in as {data['user']['email']}", fg="green")


@main.command()
def logout():
    """Forget the stored token."""
    if not load_token():
        click.echo("Not logged in.")
        return
    _run(_logout_impl())
    clear_token()
    click.echo("Logged out.")


async def _logout_impl():
    # Tokens are stateless; the server call is a courtesy.
    async with _client() as c:
        try:
            await c.post("/auth/logout")
        except httpx.TransportError:
            pass


@main.command()
def whoami():
    """Show the account behind the stored token."""
    if not load_token():
        _fail("not logged in (run `quill login`)")
    data = _call("GET", "/auth/me")
    user = data["user"]
    click.echo(f"{user['email']} (id {user['id']}, since {str(user['created_at'])[:10]})")


@main.command()
def refresh():
    """Exchange the stored token for one with a fresh expiry."""
    if not load_token():
        _fail("not logged in (run `quill login`)")
    data = _call("POST", "/auth/refresh")
    save_token(data["token"])
    click.secho("Token refreshed.", fg="green")


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


@main.group()
def posts():
    """Read and manage posts."""


@posts.command("list")
@click.option("--author", "-a", type=int, help="Only posts by this user id")
@click.option("--mine", is_flag=True, help="Only my posts (requires login)")
def list_posts(author: Optional[int], mine: bool):
    """List posts, newest first. Yours are marked with *."""
    if mine:
        data = _call("GET", "/posts/my")
    else:
        params = {"author": author} if author else None
        data = _call("GET", "/posts", params=params)
    click.secho(f"Posts ({data['count']}):", bold=True)
    click.echo()
    _print_posts(data["posts"])


@posts.command("show")
@click.argument("post_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Raw JSON output")
def show_post(post_id: int, as_json: bool):
    """Show a single post."""
    post = _call("GET", f"/posts/{post_id}")["post"]
    if as_json:
        click.echo(json.dumps(post, indent=2, default=str))
        return
    click.secho(post["title"], bold=True)
    click.echo(f"by {post.get('owner_email') or post['owner_id']} on {str(post['created_at'])[:10]}")
    click.echo()
    click.echo(post["content"])


@posts.command("create")
@click.option("--title", "-t", required=True)
@click.option("--content", "-c", required=True)
def create_post(title: str, content: str):
    """Publish a new post."""
    post = _call("POST", "/posts", json={"title": title, "content": content})["post"]
    click.secho(f"Created post #{post['id']}: {post['title']}", fg="green")


@posts.command("edit")
@click.argument("post_id", type=int)
@click.option("--title", "-t", required=True)
@click.option("--content", "-c", required=True)
def edit_post(post_id: int, title: str, content: str):
    """Replace the title and content of one of your posts."""
    post = _call(
        "PUT", f"/posts/{post_id}", json={"title": title, "content": content}
    )["post"]
    click.secho(f"Updated post #{post['id']}", fg="green")


@posts.command("delete")
@click.argument("post_id", type=int)
@click.confirmation_option(prompt="Delete this post?")
def delete_post(post_id: int):
    """Delete one of your posts."""
    _call("DELETE", f"/posts/{post_id}")
    click.secho(f"Deleted post #{post_id}", fg="green")


@posts.command("stats")
def post_stats():
    """Site-wide post counters."""
    stats = _call("GET", "/posts/stats")
    click.secho("Post statistics", bold=True)
    click.echo(f"  Total posts:       {stats['total_posts']}")
    click.echo(f"  Last 24 hours:     {stats['posts_last_24_hours']}")
    click.echo(f"  Authors:           {stats['total_authors']}")
    if stats["top_authors"]:
        click.echo()
        click.secho("  Top authors:", bold=True)
        for a in stats["top_authors"]:
            click.echo(f"    {a['owner_email']:32s} {a['post_count']:4d}")


if __name__ == "__main__":
    main()
