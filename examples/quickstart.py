#!/usr/bin/env python3
"""
Quill Quickstart — two users, one post, and the ownership gate.

Registers Alice and Bob → Alice publishes → Bob reads it but can't edit
or delete it → Alice edits and deletes it.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:8000
"""

import sys
import uuid

import httpx

BASE = "http://localhost:8000/api/v1"
PASSWORD = "demo-password"


def register(client: httpx.Client, name: str, run_id: str) -> dict:
    email = f"{name}-{run_id}@example.com"
    resp = client.post("/auth/register", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 201, f"Failed: {resp.text}"
    data = resp.json()
    print(f"   {name}: {data['user']['email']} (id {data['user']['id']})")
    return {"user": data["user"], "headers": {"Authorization": f"Bearer {data['token']}"}}


def main():
    run_id = uuid.uuid4().hex[:6]
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Health check ──────────────────────────────────────────────
    print("Checking backend health...")
    try:
        resp = client.get("/health")
    except httpx.ConnectError:
        print(f"Backend not reachable at {BASE}")
        print("Start it with:  quill-server  (or: uvicorn quill.main:app --reload)")
        sys.exit(1)
    health = resp.json()
    print(f"  Status:   {health['status']}")
    print(f"  Database: {'✓' if health['database'] == 'ok' else '✗'}")

    # ── Accounts ──────────────────────────────────────────────────
    print("\n1. Registering two users...")
    alice = register(client, "alice", run_id)
    bob = register(client, "bob", run_id)

    resp = client.post(
        "/auth/register",
        json={"email": alice["user"]["email"].upper(), "password": PASSWORD},
    )
    print(f"   Registering Alice again (different case) → {resp.status_code} {resp.json()['error']}")

    # ── Log in ────────────────────────────────────────────────────
    print("\n2. Logging in as Alice...")
    resp = client.post(
        "/auth/login", json={"email": alice["user"]["email"], "password": PASSWORD}
    )
    assert resp.status_code == 200, f"Failed: {resp.text}"
    alice["headers"] = {"Authorization": f"Bearer {resp.json()['token']}"}
    me = client.get("/auth/me", headers=alice["headers"]).json()["user"]
    print(f"   /auth/me → {me['email']}")

    resp = client.post("/auth/login", json={"email": alice["user"]["email"], "password": "wrong"})
    print(f"   Wrong password → {resp.status_code} {resp.json()['message']!r}")

    # ── Publish ───────────────────────────────────────────────────
    print("\n3. Alice publishes a post...")
    resp = client.post(
        "/posts",
        json={"title": "Hello, Quill", "content": "My very first post on this platform."},
        headers=alice["headers"],
    )
    assert resp.status_code == 201, f"Failed: {resp.text}"
    post = resp.json()["post"]
    print(f"   Post #{post['id']}: {post['title']} (owner {post['owner_email']})")

    # ── Bob reads it, then tries to tamper ────────────────────────
    print("\n4. Bob reads the post...")
    resp = client.get(f"/posts/{post['id']}", headers=bob["headers"])
    print(f"   GET → {resp.status_code}, is_owner={resp.json()['post']['is_owner']}")

    print("\n5. Bob tries to edit and delete it...")
    resp = client.put(
        f"/posts/{post['id']}",
        json={"title": "Bob was here", "content": "Overwritten by someone else."},
        headers=bob["headers"],
    )
    print(f"   PUT    → {resp.status_code} {resp.json()['message']!r}")
    resp = client.delete(f"/posts/{post['id']}", headers=bob["headers"])
    print(f"   DELETE → {resp.status_code} {resp.json()['message']!r}")

    unchanged = client.get(f"/posts/{post['id']}").json()["post"]
    assert unchanged["title"] == post["title"]
    print(f"   Post is untouched: {unchanged['title']!r}")

    # ── Alice edits and deletes ───────────────────────────────────
    print("\n6. Alice edits her post...")
    resp = client.put(
        f"/posts/{post['id']}",
        json={"title": "Hello again, Quill", "content": "Edited by the person who wrote it."},
        headers=alice["headers"],
    )
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Title is now {resp.json()['post']['title']!r}")

    print("\n7. Alice deletes it...")
    resp = client.delete(f"/posts/{post['id']}", headers=alice["headers"])
    assert resp.status_code == 204, f"Failed: {resp.text}"
    resp = client.get(f"/posts/{post['id']}")
    print(f"   GET after delete → {resp.status_code}")

    # ── Stats ─────────────────────────────────────────────────────
    stats = client.get("/posts/stats").json()
    print(f"\n✓ Done. {stats['total_posts']} posts from {stats['total_authors']} authors on this server.")


if __name__ == "__main__":
    main()
