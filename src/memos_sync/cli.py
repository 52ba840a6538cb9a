import argparse
import os
import signal
import sys
import threading

from dotenv import load_dotenv

from memos_sync.config import SETTINGS_FILE, SettingsStore
from memos_sync.constants import VALID_INTERVALS, FilenameFormat
from memos_sync.logger import LogLevel, logger
from memos_sync.sync import SyncRunner, SyncScheduler
from memos_sync.vault import LocalFilesystem


def _settings_path(args) -> str:
    """The settings file defaults to ``memos_sync.json`` inside the vault."""
    if args.config:
        return args.config
    return os.path.join(args.vault, SETTINGS_FILE)


def _build_runner(args) -> SyncRunner:
    store = SettingsStore(_settings_path(args), use_keyring=not args.no_keyring)
    return SyncRunner(store, LocalFilesystem(args.vault))


def cmd_sync(args) -> int:
    logger.header(f"同步 Memos -> {os.path.abspath(args.vault)}", icon="🔄")
    outcome = _build_runner(args).run(dry_run=args.dry_run, full=args.full)
    if outcome.plan is not None and args.dry_run:
        for path in outcome.plan.write_paths:
            logger.info(f"写入: {path}", icon="📝")
        for path in outcome.plan.skipped_writes:
            logger.info(f"跳过: {path}", icon="⏭️")
        for path in outcome.plan.deletes:
            logger.info(f"删除: {path}", icon="🗑️")
    logger.info(str(outcome))
    return 0 if outcome.success else 1


def cmd_watch(args) -> int:
    runner = _build_runner(args)
    interval = args.interval
    interval_source = None
    if interval is None:
        # Stored interval is re-read after every timed run
        interval_source = lambda: runner.store.load().interval
        interval = interval_source()
    if interval <= 0:
        logger.error("定时同步间隔为 0，请使用 --interval 或在配置中设置 interval")
        return 1

    scheduler = SyncScheduler(runner, interval, interval_source=interval_source)
    stop = threading.Event()

    def handle_signal(signum, frame):
        stop.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    logger.header(f"定时同步已启动，每 {interval} 分钟一次", icon="⏱️")
    scheduler.trigger()
    scheduler.start()
    try:
        stop.wait()
    finally:
        scheduler.shutdown()
        logger.info("定时同步已停止", icon="🏁")
    return 0


def cmd_config(args) -> int:
    store = SettingsStore(_settings_path(args), use_keyring=not args.no_keyring)
    settings = store.load()
    auth = settings.authorization

    changed = False
    if args.base_url is not None:
        auth.base_url = args.base_url.rstrip("/")
        changed = True
    if args.access_token is not None:
        auth.access_token = args.access_token
        changed = True
    if args.open_id is not None:
        auth.open_id = args.open_id
        changed = True
    if args.folder is not None:
        if not args.folder.strip():
            logger.error("同步目录名不能为空")
            return 1
        settings.folder_to_sync = args.folder
        changed = True
    if args.format is not None:
        settings.file_name_format = FilenameFormat(args.format)
        changed = True
    if args.interval is not None:
        settings.interval = args.interval
        changed = True
    if args.reset_watermark:
        settings.last_sync_time = None
        changed = True

    if changed:
        store.save(settings)
        logger.success(f"配置已保存: {store.path}")

    if args.show or not changed:
        shown = settings.to_dict()
        if shown["authorization"].get("accessToken"):
            shown["authorization"]["accessToken"] = "******"
        for key, value in shown.items():
            logger.info(f"{key}: {value}", icon="⚙️ ")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="memos-sync",
        description="Memos Sync: 将 Memos 笔记和资源同步到本地文件夹",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog="""
示例:
  1. 配置服务器和令牌:
     memos-sync config --base-url https://memos.example.com --access-token <token>

  2. 同步一次:
     memos-sync sync --vault ~/Notes

  3. 预览同步计划 (不写入文件):
     memos-sync sync --dry-run

  4. 每 30 分钟同步一次:
     memos-sync watch --interval 30
"""
    )
    parser.add_argument("--vault", default=".", help="本地仓库根目录 (默认: 当前目录)")
    parser.add_argument("--config", help=f"配置文件路径 (默认: <vault>/{SETTINGS_FILE})")
    parser.add_argument("--no-keyring", action="store_true", help="不使用系统 keyring 保存 Access Token")
    parser.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")

    subparsers = parser.add_subparsers(dest="command", help="操作类型")

    sync_parser = subparsers.add_parser("sync", help="立即同步一次")
    sync_parser.add_argument("--dry-run", action="store_true", help="只计算同步计划，不写入文件")
    sync_parser.add_argument("--full", action="store_true", help="忽略上次同步时间，重写全部笔记")
    sync_parser.set_defaults(func=cmd_sync)

    watch_parser = subparsers.add_parser("watch", help="定时同步")
    watch_parser.add_argument("--interval", type=int, choices=[i for i in VALID_INTERVALS if i],
                              help="同步间隔 (分钟)，默认使用配置中的 interval")
    watch_parser.set_defaults(func=cmd_watch)

    config_parser = subparsers.add_parser("config", help="查看或修改配置")
    config_parser.add_argument("--base-url", help="Memos 服务器地址")
    config_parser.add_argument("--access-token", help="Access Token")
    config_parser.add_argument("--open-id", help="OpenID (旧版 API)")
    config_parser.add_argument("--folder", help="同步目录名")
    config_parser.add_argument("--format", choices=[f.value for f in FilenameFormat], help="笔记文件名格式")
    config_parser.add_argument("--interval", type=int, choices=list(VALID_INTERVALS), help="定时同步间隔 (分钟)，0 为关闭")
    config_parser.add_argument("--reset-watermark", action="store_true", help="清除上次同步时间，下次全量同步")
    config_parser.add_argument("--show", action="store_true", help="显示当前配置")
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv=None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logger.set_level(LogLevel.DEBUG)

    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except KeyboardInterrupt:
        logger.info("\n操作取消")
        return 130


if __name__ == "__main__":
    sys.exit(main())
