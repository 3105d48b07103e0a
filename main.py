import argparse
import logging
import sys

from FlashcardsModule import Judgment, PresenterState
from FlashcardsModule import session_api
from LessonModule import LessonNotFound, LessonStore
from tools import settings
from tools.speech_service import SpeechService

logger = logging.getLogger(__name__)

HELP = "[f] flip  [k] known  [x] forgot  [r] reverse  [s] speak  [q] quit"


def _print_card(session) -> None:
    face = session_api.snapshot(session)
    position, total = session_api.progress(session)
    card = face["card"]
    print(f"\n({position} / {total})  [{face['orientation']}, {card['side']}]")
    for field in ("word", "ipa", "definition"):
        if card[field]:
            print(f"  {card[field]}")
    if card["example"]:
        print(f'  "{card["example"]}"')


def run_cli_review(items, speech=None) -> None:
    """Review ``items`` in the terminal until done or the user quits."""
    session = session_api.create_session(items, speech=speech)
    print(f"\n📚 Reviewing {len(session.items)} word(s)")
    print(HELP)
    try:
        while True:
            state = session_api.phase(session)
            if state is PresenterState.SESSION_COMPLETE:
                print("\n✨ All Words Mastered! Great job, you've reviewed all vocabulary.")
                return
            if state is PresenterState.ROUND_SUMMARY:
                remaining = session.presenter.words_to_review()
                if remaining:
                    print(f"\n🔁 Round Complete! You have {remaining} words to review.")
                    input("Press Enter to start the next round...")
                session_api.advance_round(session)
                continue

            _print_card(session)
            command = input("> ").strip().lower()
            if command == "q":
                return
            if command == "f":
                session_api.flip(session)
            elif command == "r":
                session.presenter.toggle_orientation()
            elif command == "s":
                session_api.speak(session)
            elif command in ("k", "x"):
                known = command == "k"
                session_api.judge(session, Judgment.KNOWN if known else Judgment.FORGOT)
                print("✅ Known" if known else "❌ Forgot")
                session.presenter.wait_for_advance()
            else:
                print(HELP)
    finally:
        session_api.close(session)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Vocabulary flashcards")
    sub = parser.add_subparsers(dest="command", required=True)
    review = sub.add_parser("review", help="Review a lesson's vocabulary in the terminal")
    review.add_argument("lesson_id")
    review.add_argument("--no-speech", action="store_true", help="Disable pronunciation")
    sub.add_parser("list", help="List stored lessons")
    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        import uvicorn

        uvicorn.run("backend.app:app", host=args.host, port=args.port)
        return 0

    store = LessonStore()
    if args.command == "list":
        for lesson in store.list_lessons():
            print(f"{lesson.id}  {lesson.date}  {lesson.vocabulary_title} ({len(lesson.vocabulary)} words)")
        return 0

    try:
        items = store.get_vocabulary(args.lesson_id)
    except LessonNotFound:
        print(f"Error: lesson {args.lesson_id} not found.")
        return 1
    if not items:
        print("This lesson has no vocabulary to review.")
        return 1
    run_cli_review(items, speech=None if args.no_speech else SpeechService())
    return 0


if __name__ == "__main__":
    sys.exit(main())
