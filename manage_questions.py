"""
🛠️ Q&A BOARD MANAGEMENT HELPER
Quick script to inspect and moderate the board straight from the configured storage
(BV_STORAGE / DATABASE_URL / BV_DATA_FILE, same as the server).

Usage:
    python manage_questions.py --init
    python manage_questions.py --list
    python manage_questions.py --show <question_id>
    python manage_questions.py --delete-question <question_id>
    python manage_questions.py --delete-answer <answer_id>
"""

import sys
import os
from datetime import datetime, timezone

# Add the project directory to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from qaboard.config import Settings
from qaboard.errors import NotFound
from qaboard.services.qa_store import QAStore
from qaboard.storage import build_backend


def open_store():
    store = QAStore(build_backend(Settings.from_env()))
    store.init()
    return store


def _fmt_ts(ms):
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def _short(text, width=50):
    text = text.replace("\n", " ")
    return text if len(text) <= width else text[:width - 3] + "..."


def init_storage(store=None):
    """Create tables / the data file"""
    store = store or open_store()
    try:
        store.init()
        print(f"✅ Storage initialised ({store.backend.name})")
        return True
    finally:
        store.close()


def list_questions(store=None):
    """List all questions, newest first"""
    store = store or open_store()

    try:
        views = store.list_questions()

        if not views:
            print("No questions found.")
            return

        print("\n📋 QUESTIONS:\n")
        print(f"{'ID':<38} {'Created':<18} {'Likes':<7} {'Answers':<9} {'Text':<50}")
        print("-" * 125)

        for v in views:
            q = v.question
            print(f"{q.id:<38} {_fmt_ts(q.created_at):<18} {v.likes:<7} {len(v.answers):<9} {_short(q.text):<50}")

        print()
    finally:
        store.close()


def show_question(question_id, store=None):
    """Print one question with its answers"""
    store = store or open_store()

    try:
        try:
            view = store.get_question(question_id)
        except NotFound:
            print(f"❌ Question '{question_id}' not found!")
            return False

        q = view.question
        print(f"\n❓ {q.text}")
        print(f"   ID: {q.id}")
        print(f"   Created: {_fmt_ts(q.created_at)}")
        print(f"   Likes: {view.likes}")
        print(f"   Answers: {len(view.answers)}")
        for a in view.answers:
            print(f"   - [{a.id}] {_fmt_ts(a.created_at)}  {_short(a.text, 80)}")
        print()

        return True
    finally:
        store.close()


def delete_question(question_id, store=None):
    """Delete a question with all its answers and likes"""
    store = store or open_store()

    try:
        if not store.delete_question(question_id):
            print(f"❌ Question '{question_id}' not found!")
            return False

        print(f"🗑️ Question '{question_id}' deleted (answers and likes removed)")
        return True
    finally:
        store.close()


def delete_answer(answer_id, store=None):
    """Delete a single answer"""
    store = store or open_store()

    try:
        if not store.delete_answer(answer_id):
            print(f"❌ Answer '{answer_id}' not found!")
            return False

        print(f"🗑️ Answer '{answer_id}' deleted")
        return True
    finally:
        store.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    command = sys.argv[1]

    if command == "--init":
        init_storage()

    elif command == "--list":
        list_questions()

    elif command == "--show":
        if len(sys.argv) < 3:
            print("Usage: python manage_questions.py --show <question_id>")
            sys.exit(1)
        show_question(sys.argv[2])

    elif command == "--delete-question":
        if len(sys.argv) < 3:
            print("Usage: python manage_questions.py --delete-question <question_id>")
            sys.exit(1)
        delete_question(sys.argv[2])

    elif command == "--delete-answer":
        if len(sys.argv) < 3:
            print("Usage: python manage_questions.py --delete-answer <answer_id>")
            sys.exit(1)
        delete_answer(sys.argv[2])

    else:
        print(f"Unknown command: {command}")
        print(__doc__)
        sys.exit(1)
