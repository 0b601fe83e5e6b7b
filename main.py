"""
Main entry point for the Quote Journal.
Provides command-line interface and system initialization.
"""

import argparse
import sys
from typing import List, Optional

import uvicorn

from database import DatabaseManager, Quote, QuoteStore
from exporter import export_quote_image
from utils import (
    main_logger, config_manager, resolve_project_path, log_execution,
    QuoteValidator, QuoteJournalError, ConfigurationError, NotFoundError, ErrorCodes
)


def format_quote(quote: Quote) -> str:
    """终端显示格式"""
    return f"[{quote.id}] “{quote.text}”\n    — {quote.author} · {quote.formatted_date}"


class QuoteJournal:
    """语录本主类，持有唯一的存储实例"""

    def __init__(self, db_path: Optional[str] = None):
        self.config = config_manager
        if db_path is None:
            db_path = str(resolve_project_path(self.config.get_database_config().db_path))
        self.db_path = db_path
        self.store: Optional[QuoteStore] = None

    def initialize(self):
        """打开数据库并建表"""
        main_logger.info(f"[Main] Opening quote journal at {self.db_path}")
        self.store = QuoteStore(DatabaseManager(self.db_path))

    def shutdown(self):
        if self.store is not None:
            self.store.close()
            self.store = None
            main_logger.info("[Main] Quote journal closed")

    def _require_quote(self, quote_id: int) -> Quote:
        quote = self.store.get_quote(quote_id)
        if quote is None:
            raise NotFoundError(f"Quote {quote_id} does not exist", ErrorCodes.QUOTE_NOT_FOUND, {"id": quote_id})
        return quote

    # === 命令 ===

    def add_quote(self, text: str, author: str) -> int:
        text, author = QuoteValidator.validate_quote_input(text, author)
        quote_id = self.store.insert_quote(text, author)
        print(f"Saved quote {quote_id}")
        return quote_id

    def list_quotes(self, limit: Optional[int] = None) -> List[Quote]:
        quotes = self.store.get_all_quotes()
        if limit is not None:
            quotes = quotes[:max(0, limit)]

        if not quotes:
            print("No quotes yet. Add one with: python main.py add --text ... --author ...")
            return quotes

        for quote in quotes:
            print(format_quote(quote))
        return quotes

    def show_random(self) -> Optional[Quote]:
        """今日语录"""
        quote = self.store.get_random_quote()
        if quote is None:
            print("No quotes yet.")
        else:
            print(format_quote(quote))
        return quote

    def show_quote(self, quote_id: int) -> Quote:
        quote = self._require_quote(quote_id)
        print(format_quote(quote))
        return quote

    def edit_quote(self, quote_id: int, text: Optional[str] = None, author: Optional[str] = None) -> Quote:
        """编辑语录，未提供的字段保持原值"""
        current = self._require_quote(quote_id)
        text, author = QuoteValidator.validate_quote_input(
            current.text if text is None else text,
            current.author if author is None else author
        )
        updated = self.store.update_quote(current.model_copy(update={"text": text, "author": author}))
        print(f"Updated quote {quote_id}")
        return updated

    def delete_quote(self, quote_id: int):
        self.store.delete_quote(quote_id)
        print(f"Deleted quote {quote_id}")

    @log_execution("Main", "export_quote")
    def export_quote(self, quote_id: int, output: Optional[str] = None):
        path = export_quote_image(self._require_quote(quote_id), output)
        print(f"Exported quote {quote_id} to {path}")
        return path

    @log_execution("Main", "backup")
    def backup(self, output: Optional[str] = None):
        if not self.config.get_database_config().backup_enabled:
            raise ConfigurationError(
                "Backups are disabled by database_config.backup_enabled",
                ErrorCodes.CONFIG_BACKUP_DISABLED
            )
        path = self.store.backup(output)
        print(f"Database backed up to {path}")
        return path

    def start_api_server(self, host: Optional[str] = None, port: Optional[int] = None):
        """启动API服务器，与命令行共用同一个存储"""
        from api.app import create_app

        api_config = self.config.get_api_config()
        host = host or api_config.host
        port = port or api_config.port

        main_logger.info(f"[Main] Starting API server on {host}:{port}")
        uvicorn.run(create_app(self.store), host=host, port=port, log_level="info")


def create_parser():
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        description="Quote Journal - 语录收藏本",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
使用示例:
  python main.py add --text "Stay hungry, stay foolish." --author "Steve Jobs"
  python main.py list --limit 10               # 最新的10条
  python main.py random                        # 今日语录
  python main.py edit --id 3 --author "Anon"   # 只修改作者
  python main.py export --id 3 --output card.png
  python main.py api --host 127.0.0.1 --port 8000
        """
    )
    parser.add_argument('--db', type=str, help='数据库文件路径 (默认读取配置)')

    subparsers = parser.add_subparsers(dest='command', help='可用命令')

    add_parser = subparsers.add_parser('add', help='新增语录')
    add_parser.add_argument('--text', required=True, help='语录正文')
    add_parser.add_argument('--author', required=True, help='作者')

    list_parser = subparsers.add_parser('list', help='列出全部语录（最新在前）')
    list_parser.add_argument('--limit', type=int, help='最多显示条数')

    subparsers.add_parser('random', help='随机显示一条语录')

    show_parser = subparsers.add_parser('show', help='显示指定语录')
    show_parser.add_argument('--id', type=int, required=True, help='语录ID')

    edit_parser = subparsers.add_parser('edit', help='编辑语录')
    edit_parser.add_argument('--id', type=int, required=True, help='语录ID')
    edit_parser.add_argument('--text', help='新的正文')
    edit_parser.add_argument('--author', help='新的作者')

    delete_parser = subparsers.add_parser('delete', help='删除语录')
    delete_parser.add_argument('--id', type=int, required=True, help='语录ID')

    export_parser = subparsers.add_parser('export', help='导出语录卡片图片')
    export_parser.add_argument('--id', type=int, required=True, help='语录ID')
    export_parser.add_argument('--output', help='输出 PNG 文件路径')

    backup_parser = subparsers.add_parser('backup', help='备份数据库')
    backup_parser.add_argument('--output', help='备份文件路径')

    api_parser = subparsers.add_parser('api', help='启动API服务器')
    api_parser.add_argument('--host', help='监听地址 (默认读取配置)')
    api_parser.add_argument('--port', type=int, help='监听端口 (默认读取配置)')

    return parser


def run_command(journal: QuoteJournal, args: argparse.Namespace):
    """执行对应命令"""
    if args.command == 'add':
        journal.add_quote(args.text, args.author)
    elif args.command == 'list':
        journal.list_quotes(args.limit)
    elif args.command == 'random':
        journal.show_random()
    elif args.command == 'show':
        journal.show_quote(args.id)
    elif args.command == 'edit':
        journal.edit_quote(args.id, args.text, args.author)
    elif args.command == 'delete':
        journal.delete_quote(args.id)
    elif args.command == 'export':
        journal.export_quote(args.id, args.output)
    elif args.command == 'backup':
        journal.backup(args.output)
    elif args.command == 'api':
        journal.start_api_server(args.host, args.port)


def main(argv: Optional[List[str]] = None):
    """主函数"""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    journal = QuoteJournal(args.db)
    try:
        journal.initialize()
        run_command(journal, args)
    except KeyboardInterrupt:
        main_logger.info("[Main] Received keyboard interrupt")
    except QuoteJournalError as e:
        main_logger.error(f"[Main] {args.command} failed: {e}")
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)
    finally:
        journal.shutdown()


if __name__ == "__main__":
    main()
