from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .env import load_dotenv_if_present
from .config import Subs2LangConfig
from .errors import AlignmentFailure, TranslationCancelled
from .log_config import setup_logging
from .pipeline import Subs2LangPipeline
from .translate.pacing import CancelToken

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="subs2lang",
        description="subs2lang: 使用 LLM 分批翻译 SRT 字幕，保持时间轴与条目数量不变。",
    )
    parser.add_argument(
        "input",
        type=str,
        help="输入 SRT 字幕文件路径。",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="输出 SRT 文件路径（默认: 与输入同目录，文件名追加目标语言代码，如 movie.sq.srt）。",
    )
    parser.add_argument(
        "--source",
        type=str,
        default="en",
        help="源语言代码（默认: en）。",
    )
    parser.add_argument(
        "--target",
        type=str,
        default="sq",
        help="目标语言代码（默认: sq，阿尔巴尼亚语）。",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="每个 batch 的字幕条数（默认: 25，可通过环境变量 SUBS2LANG_BATCH_SIZE 配置）。",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=None,
        help="每个 batch 的最大尝试次数（默认: 3，可通过环境变量 SUBS2LANG_MAX_RETRIES 配置）。",
    )
    parser.add_argument(
        "--batch-delay",
        type=float,
        default=None,
        help="batch 之间的等待秒数（默认: 12，可通过环境变量 SUBS2LANG_BATCH_DELAY 配置）。",
    )
    parser.add_argument(
        "--retry-delay",
        type=float,
        default=None,
        help="重试之间的等待秒数（默认: 5，可通过环境变量 SUBS2LANG_RETRY_DELAY 配置）。",
    )
    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="LLM 模型名称（默认读取 SUBS2LANG_LLM_MODEL，否则为 openai/gpt-oss-120b）。",
    )
    parser.add_argument(
        "--engine",
        type=str,
        choices=["llm", "passthrough"],
        default="llm",
        help="翻译引擎：llm / passthrough（不调用 API，仅复制原文，用于检查读写链路）。",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="额外写入 DEBUG 级别日志的文件路径。",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="控制台输出 DEBUG 日志（包括请求预览与原始回复）。",
    )
    return parser


@contextmanager
def cancel_on_interrupt(token: CancelToken) -> Iterator[None]:
    """
    运行期间把 Ctrl-C 转为取消信号。

    第一次 Ctrl-C 触发 token，batch 间等待与重试等待立即被唤醒，
    进行中的请求返回后结果被丢弃；第二次 Ctrl-C 按 KeyboardInterrupt 立即退出。
    信号处理器只能在主线程安装，其他线程中不做任何处理。
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = signal.getsignal(signal.SIGINT)

    def _handle_interrupt(signum, frame):
        if token.cancelled:
            raise KeyboardInterrupt
        logger.warning("Interrupt received, stopping at the next checkpoint (Ctrl-C again to force)")
        token.cancel()

    signal.signal(signal.SIGINT, _handle_interrupt)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def main(argv: list[str] | None = None) -> int:
    # 确保在解析参数和使用配置之前加载 .env 中的环境变量
    load_dotenv_if_present()
    if argv is None:
        argv = sys.argv[1:]

    parser = build_arg_parser()
    args = parser.parse_args(argv)

    setup_logging(
        level=logging.DEBUG if args.debug else logging.INFO,
        log_file=args.log_file,
    )

    try:
        config = Subs2LangConfig.from_paths(
            input_path=args.input,
            output_path=args.output,
            source_lang=args.source,
            target_lang=args.target,
            batch_size=args.batch_size,
            max_retries=args.max_retries,
            inter_batch_delay=args.batch_delay,
            inter_retry_delay=args.retry_delay,
            translation_engine=args.engine,
        )
        pipeline = Subs2LangPipeline(config, model=args.model)
        with cancel_on_interrupt(pipeline.cancel_token):
            items = pipeline.run()
        print("字幕翻译完成")
        print(f"   输入: {Path(args.input)}")
        print(f"   输出: {config.output_path}")
        print(f"   条目数: {len(items)}")
        return 0
    except (TranslationCancelled, KeyboardInterrupt):
        print("\n用户中断，未写出输出文件")
        return 1
    except AlignmentFailure as exc:
        print(f"翻译结果校验失败，未写出输出文件: {exc}")
        return 1
    except Exception as exc:
        print(f"处理失败: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
