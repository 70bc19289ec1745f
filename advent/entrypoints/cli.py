#!/usr/bin/env python3
"""CLI Entrypoint - コマンドラインからカレンダーを操作

使い方:
    python -m advent.entrypoints.cli create --name 花子 --interest "紅茶, 登山"
    python -m advent.entrypoints.cli --uid <uid> set-text <calendar_id> 1 "メリークリスマス"
    python -m advent.entrypoints.cli --uid <uid> set-image <calendar_id> 2 https://example.com/a.png
    python -m advent.entrypoints.cli show <calendar_id>
    python -m advent.entrypoints.cli receive <calendar_id>
    python -m advent.entrypoints.cli --uid <受け取った uid> open <calendar_id> 1
    python -m advent.entrypoints.cli --uid <uid> delete <calendar_id>
    python -m advent.entrypoints.cli list [--received]

毎回 Firebase Auth で匿名サインインする（新しい uid が発行される）。
--uid を指定するとサインインを省略し、その uid として操作する。
create / receive は uid を標準エラーに表示するので、続きの操作ではそれを --uid に渡す。
ドアの解禁日は端末のローカル日付で判定する。

環境変数:
    PROJECT_ID, FIREBASE_API_KEY: 必須
    FIREBASE_AUTH_EMULATOR_HOST: Auth エミュレータ接続先
    LOG_LEVEL: ログレベル (DEBUG, INFO, WARNING, ERROR) デフォルト: INFO
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime

from advent.domain.errors import AdventCalendarError
from advent.domain.models import AdventCalendar
from advent.entrypoints.factory import AppContainer, create_app_container
from advent.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="advent", description="Advent calendar gifting CLI"
    )
    parser.add_argument("--uid", help="サインインせずにこの uid として操作する")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="空のカレンダーを作成")
    create.add_argument("--name", required=True, help="贈る相手の名前")
    create.add_argument("--interest", default="", help="相手の好きなもの")

    show = sub.add_parser("show", help="カレンダーを表示")
    show.add_argument("calendar_id")

    delete = sub.add_parser("delete", help="カレンダーを削除（作成者のみ）")
    delete.add_argument("calendar_id")

    set_text = sub.add_parser("set-text", help="ドアにテキストを設定")
    set_text.add_argument("calendar_id")
    set_text.add_argument("day", type=int)
    set_text.add_argument("text")

    set_image = sub.add_parser("set-image", help="ドアに画像URLを設定")
    set_image.add_argument("calendar_id")
    set_image.add_argument("day", type=int)
    set_image.add_argument("image_url")

    clear = sub.add_parser("clear", help="ドアの中身を消す")
    clear.add_argument("calendar_id")
    clear.add_argument("day", type=int)

    open_door = sub.add_parser("open", help="ドアを開ける")
    open_door.add_argument("calendar_id")
    open_door.add_argument("day", type=int)

    receive = sub.add_parser("receive", help="カレンダーを受け取る")
    receive.add_argument("calendar_id")

    list_cmd = sub.add_parser("list", help="カレンダー一覧")
    list_cmd.add_argument(
        "--received", action="store_true", help="受け取ったカレンダーを表示"
    )
    return parser


def resolve_uid(container: AppContainer, uid: str | None) -> str:
    if uid:
        return uid
    return asyncio.run(container.auth_session.sign_in_anonymously())


def run_command(args: argparse.Namespace, container: AppContainer, uid: str) -> None:
    service = container.calendar_service
    command = args.command

    if command == "create":
        calendar = service.create_calendar(uid, args.name, args.interest)
        print(calendar.id)
        _print_uid_hint(uid)
    elif command == "show":
        _print_calendar(service.get_calendar(args.calendar_id), _local_now())
    elif command == "delete":
        service.delete_calendar(uid, args.calendar_id)
        print(f"Deleted calendar {args.calendar_id}")
    elif command == "set-text":
        calendar = service.set_door_text(uid, args.calendar_id, args.day, args.text)
        _print_progress(calendar)
    elif command == "set-image":
        calendar = service.set_door_image(
            uid, args.calendar_id, args.day, args.image_url
        )
        _print_progress(calendar)
    elif command == "clear":
        _print_progress(service.clear_door(uid, args.calendar_id, args.day))
    elif command == "open":
        door = service.open_door(uid, args.calendar_id, args.day, now=_local_now())
        print(door.text or door.image_url or "(empty)")
    elif command == "receive":
        calendar = service.receive_calendar(uid, args.calendar_id)
        print(f"Received calendar for {calendar.recipient_name}")
        _print_uid_hint(uid)
    elif command == "list":
        calendars = (
            service.list_received(uid) if args.received else service.list_created(uid)
        )
        for calendar in calendars:
            print(
                f"{calendar.id}\t{calendar.recipient_name}\t"
                f"{calendar.filled_door_count}/{len(calendar.doors)}"
            )


def _local_now() -> datetime:
    # ドアの解禁は端末のローカル日付で判定する
    return datetime.now().astimezone()


def _print_uid_hint(uid: str) -> None:
    """匿名サインインの uid は実行ごとに変わるので、続きの操作用に表示する"""
    print(f"uid: {uid} (pass --uid {uid} to continue as this user)", file=sys.stderr)


def _print_progress(calendar: AdventCalendar) -> None:
    status = "complete" if calendar.is_complete else "in progress"
    print(f"{calendar.filled_door_count}/{len(calendar.doors)} doors filled ({status})")


def _print_calendar(calendar: AdventCalendar, now: datetime) -> None:
    print(f"Calendar {calendar.id} for {calendar.recipient_name}")
    print(f"Interests: {calendar.recipient_interest}")
    _print_progress(calendar)
    openable = {door.day for door in calendar.unlockable_doors(now)}
    for door in calendar.doors:
        if door.is_unlocked:
            mark = "x"
        elif door.day in openable:
            mark = "*"
        else:
            mark = " "
        print(f"  [{mark}] {door.day:2d} {door.content_type.display_name}")
    print("  [x] opened  [*] can be opened now")


def main(argv: list[str] | None = None) -> None:
    """メインエントリーポイント"""
    setup_logging()
    args = build_parser().parse_args(argv)

    try:
        container = create_app_container()
        uid = resolve_uid(container, args.uid)
        logger.info("Running command=%s as uid=%s", args.command, uid)
        run_command(args, container, uid)

    except AdventCalendarError as e:
        logger.error("%s: %s", type(e).__name__, e)
        sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)

    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    main()
