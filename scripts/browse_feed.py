#!/usr/bin/env python3
# =============================================================================
# scripts/browse_feed.py - Browse the Meme Feed from a Terminal
# =============================================================================
# A headless front-end for the sync core. "Scrolling" is simulated by marking
# the last rendered meme as visible, which drives the ScrollTrigger exactly
# like a real viewport would.
#
# Usage:
#   python scripts/browse_feed.py
#
# Commands:
#   /login <user> <password> - Sign in
#   /scroll                  - Scroll to the bottom (loads the next page)
#   /comments <n>            - Toggle the comment thread of meme #n
#   /comment <n> <text>      - Comment on meme #n
#   /logout                  - Sign out
#   /quit or /exit           - Exit
# =============================================================================

import asyncio
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from app.exceptions import MemeFeedException, user_message_for
from app.main import MemeFeedClient, configure_logging
from core.services import ManualVisibilityObserver


def print_feed(client: MemeFeedClient) -> None:
    feed = client.feed
    for number, item in enumerate(feed.state.items, start=1):
        print(f"#{number} [{item.author.username}] {item.description}")
        print(f"    {item.picture_url}  ({feed.displayed_comment_count(item.id)} comments)")
        if feed.opened_item_id == item.id:
            if feed.state.is_loading_comments(item.id):
                print("      loading comments...")
            for comment in item.comments or ():
                print(f"      - {comment.author.username or 'you'}: {comment.content}")
    if feed.is_loading:
        print("  loading...")
    elif not feed.has_more:
        print("  -- end of feed --")


def item_id_at(client: MemeFeedClient, number: str) -> str:
    items = client.feed.state.items
    index = int(number) - 1
    if not 0 <= index < len(items):
        raise ValueError(f"No meme #{number}")
    return items[index].id


async def handle(client: MemeFeedClient, observer: ManualVisibilityObserver, line: str) -> bool:
    parts = line.split(maxsplit=2)
    command = parts[0].lower()

    if command in ("/quit", "/exit"):
        return False

    if command == "/login" and len(parts) == 3:
        await client.login(parts[1], parts[2])
        await client.feed.mount()
    elif command == "/logout":
        client.signout()
        print("Signed out.")
        return True
    elif command == "/scroll":
        items = client.feed.state.item_ids
        if items:
            observer.set_visible(items[-1], 0.0)
            observer.set_visible(items[-1], 1.0)
            await client.feed.trigger.wait_idle()
    elif command == "/comments" and len(parts) == 2:
        await client.feed.toggle_comments(item_id_at(client, parts[1]))
    elif command == "/comment" and len(parts) == 3:
        item_id = item_id_at(client, parts[1])
        client.feed.set_comment_draft(item_id, parts[2])
        client.feed.submit_comment(item_id)
    else:
        print("Unknown command. See the header of this script for help.")
        return True

    print_feed(client)
    return True


async def main() -> None:
    configure_logging()
    observer = ManualVisibilityObserver()
    client = MemeFeedClient.create(
        observer=observer,
        redirect=lambda path: print(f"Session ended, please sign in again ({path})"),
        on_error=lambda message: print(f"! {message}"),
    )

    if client.start():
        await client.feed.mount()
        print_feed(client)
    else:
        print("Not signed in. Use /login <user> <password>.")

    try:
        while True:
            line = (await asyncio.to_thread(input, "> ")).strip()
            if not line:
                continue
            try:
                if not await handle(client, observer, line):
                    break
            except (MemeFeedException, ValueError) as e:
                print(f"! {user_message_for(e) if isinstance(e, MemeFeedException) else e}")
    finally:
        if client.authors is not None:
            await client.feed.writer.drain()
        await client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
