import argparse
import signal
import threading
from dataclasses import replace
from types import FrameType

import uvicorn

from focusbuddy.api.main import create_app
from focusbuddy.api.services.aggregator import Tier1Analyzer
from focusbuddy.api.services.board import JudgmentBoard
from focusbuddy.api.services.context_memory import ContextMemory
from focusbuddy.api.services.fusion import Tier2Fusion
from focusbuddy.api.services.llm import OllamaService
from focusbuddy.api.services.vision import VisionJudge
from focusbuddy.model.config import ConfigError, MonitoringConfig, load_config
from focusbuddy.model.models import Goal
from focusbuddy.ui.notifications import AlertService
from focusbuddy.watchers.logger import logger, setup_logging
from focusbuddy.watchers.scheduler import (
    FocusMonitor,
    SystemClock,
    build_cycles,
    start_cycles,
)
from focusbuddy.watchers.screen_capture import ScreenCapture
from focusbuddy.watchers.text_extraction import ScreenTextWatcher


def build_monitor(
    goal: Goal,
    config: MonitoringConfig,
    memory: ContextMemory,
    board: JudgmentBoard,
) -> FocusMonitor:
    """Wire the real collaborators around the shared memory."""
    reasoning_llm = OllamaService(config.llm_url, config.llm_model)
    vision_llm = OllamaService(config.llm_url, config.vision_model)
    screen = ScreenCapture()

    return FocusMonitor(
        goal=goal,
        text_source=ScreenTextWatcher(screen=screen),
        visual_source=VisionJudge(
            vision_llm,
            goal,
            screenshot=lambda: screen.capture_png(max_width=config.vision_max_width),
        ),
        tier1=Tier1Analyzer(reasoning_llm, memory),
        fusion=Tier2Fusion(memory),
        alerter=AlertService(config),
        board=board,
    )


def start_status_api(
    config: MonitoringConfig,
    board: JudgmentBoard,
    goal: Goal,
    memory: ContextMemory,
) -> threading.Thread:
    app = create_app(board, goal, memory)
    server = uvicorn.Server(
        uvicorn.Config(app, host="127.0.0.1", port=config.status_api_port, log_level="warning")
    )
    thread = threading.Thread(target=server.run, name="status-api", daemon=True)
    thread.start()
    logger.info("Status API: http://127.0.0.1:%s/status", config.status_api_port)
    return thread


def read_goal(goal_text: str | None) -> Goal | None:
    text = goal_text if goal_text is not None else input("What do you want to focus on? ")
    if not text or not text.strip():
        return None
    return Goal(text=text.strip())


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="FocusBuddy two-stage focus monitor")
    parser.add_argument("--goal", help="focus goal (prompted for when omitted)")
    parser.add_argument("--quick-interval", type=float, help="quick check period (s)")
    parser.add_argument("--deep-interval", type=float, help="deep analysis period (s)")
    parser.add_argument("--status-port", type=int, help="serve the status API on this port")
    return parser.parse_args(argv)


def apply_overrides(config: MonitoringConfig, args: argparse.Namespace) -> MonitoringConfig:
    if args.quick_interval is not None:
        config = replace(config, quick_check_interval=args.quick_interval)
    if args.deep_interval is not None:
        config = replace(config, deep_analysis_interval=args.deep_interval)
    if args.status_port is not None:
        config = replace(config, status_api_port=args.status_port)
    if config.quick_check_interval <= 0 or config.deep_analysis_interval <= 0:
        msg = "intervals must be positive"
        raise ConfigError(msg)
    return config


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        config = apply_overrides(load_config(), args)
    except ConfigError as exc:
        setup_logging()
        logger.error("Invalid configuration: %s", exc)  # noqa: TRY400
        return 2

    setup_logging(config.log_path if config.enable_logging else None)

    goal = read_goal(args.goal)
    if goal is None:
        logger.error("No focus task provided. Exiting...")
        return 1

    logger.info("Monitoring focus on: %s", goal.text)
    logger.info(
        "Quick checks (OCR + reasoning, %s) every %.0fs",
        config.llm_model,
        config.quick_check_interval,
    )
    logger.info(
        "Deep analysis (vision, %s) every %.0fs",
        config.vision_model,
        config.deep_analysis_interval,
    )

    memory = ContextMemory()
    board = JudgmentBoard()
    stop_event = threading.Event()

    def _shutdown(signum: int, _frame: FrameType | None) -> None:
        logger.info("Shutting down (signal %s)...", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    monitor = build_monitor(goal, config, memory, board)
    if config.status_api_port > 0:
        start_status_api(config, board, goal, memory)

    cycles = build_cycles(monitor, config, SystemClock(stop_event))
    threads = start_cycles(cycles, stop_event)

    logger.info("FocusBuddy is now monitoring. Press Ctrl+C to stop")
    while not stop_event.wait(1.0):
        pass
    for thread in threads:
        thread.join(timeout=5)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
