# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
CareerScout command-line interface.

Usage:
    careerscout run URL --company NAME     # Crawl a career site
    careerscout resume LOCATOR             # Resume a failed or suspended crawl
    careerscout resume --company NAME      # Resume the latest crawl for a company
    careerscout checkpoints                # List resumable checkpoints
    careerscout failures [--company NAME]  # Failure case statistics

Collected jobs are printed to stdout as JSON lines, followed by a summary
line describing the session.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from careerscout.agents.crawler_agent import CrawlerAgent, CrawlResult
from careerscout.agents.tools.playwright_executor import PlaywrightToolExecutor
from careerscout.config import AgentConfig, StorageSettings, load_agent_config
from careerscout.core.browser import BrowserManager
from careerscout.exceptions import CareerScoutError
from careerscout.llm.factory import LLMProviderFactory
from careerscout.storage.checkpoint_store import CheckpointStore
from careerscout.storage.failure_case_store import FailureCaseStore
from careerscout.storage.filesystem import FileSystemStore
from careerscout.utils.logger import LogFormat, configure_logging, logger


def get_version() -> str:
    """Get the CareerScout version."""
    import careerscout

    return getattr(careerscout, "__version__", "unknown")


def emit(record: Dict[str, Any]) -> None:
    """Print one JSON line to stdout."""
    print(json.dumps(record, ensure_ascii=False, default=str), flush=True)


def build_stores(settings: StorageSettings) -> Tuple[CheckpointStore, FailureCaseStore]:
    """Create the checkpoint and failure case stores from storage settings."""
    failure_path = Path(settings.failure_cases_file)
    checkpoints = CheckpointStore(FileSystemStore(settings.checkpoint_dir))
    failures = FailureCaseStore(FileSystemStore(failure_path.parent), key=failure_path.name)
    return checkpoints, failures


def emit_result(result: CrawlResult) -> None:
    for job in result.jobs:
        emit({"type": "job", **job.to_dict()})
    emit({"type": "summary", **result.to_dict()})


async def _crawl(
    args: argparse.Namespace,
    config: AgentConfig,
    settings: StorageSettings,
    company: str,
    url: Optional[str] = None,
    locator: Optional[str] = None,
) -> Optional[CrawlResult]:
    llm = LLMProviderFactory.create(
        config.llm.provider,
        model=config.llm.model,
        api_key=settings.api_key_for(config.llm.provider),
    )
    checkpoints, failures = build_stores(settings)

    async with BrowserManager(headless=not args.headed, browser_type=args.browser) as browser:
        agent = CrawlerAgent(
            llm,
            PlaywrightToolExecutor(browser.page),
            company,
            checkpoints,
            failures,
            config=config,
            log_dir=settings.log_dir,
        )
        try:
            if url is not None:
                return await agent.run(url)
            if locator is not None:
                return await agent.resume(locator)
            return await agent.resume_latest()
        except BaseException:
            # Jobs collected before the failure are still printed
            if agent.last_result is not None:
                emit_result(agent.last_result)
            raise


def cmd_run(args: argparse.Namespace, config: AgentConfig, settings: StorageSettings) -> int:
    """Crawl a career site from scratch."""
    result = asyncio.run(_crawl(args, config, settings, args.company, url=args.url))
    emit_result(result)
    return 0


def cmd_resume(args: argparse.Namespace, config: AgentConfig, settings: StorageSettings) -> int:
    """Resume a checkpoint by locator or the latest one for a company."""
    if not args.locator and not args.company:
        logger.error("resume needs a checkpoint locator or --company")
        return 2

    company = args.company
    if company is None:
        checkpoints, _ = build_stores(settings)
        session = asyncio.run(checkpoints.load(args.locator))
        if session is None:
            logger.error(f"Checkpoint not found: {args.locator}")
            return 1
        company = session.company

    result = asyncio.run(
        _crawl(args, config, settings, company, locator=args.locator)
    )
    if result is None:
        emit({"type": "summary", "company": company, "status": "nothing_to_resume"})
        return 1
    emit_result(result)
    return 0


def cmd_checkpoints(args: argparse.Namespace, config: AgentConfig, settings: StorageSettings) -> int:
    """List resumable checkpoints."""
    checkpoints, _ = build_stores(settings)
    for entry in asyncio.run(checkpoints.list_resumable()):
        emit(
            {
                "type": "checkpoint",
                "company": entry.company,
                "locator": entry.locator,
                "status": entry.status,
                "jobCount": entry.job_count,
            }
        )
    return 0


async def _failure_report(
    failures: FailureCaseStore, company: Optional[str], tool: Optional[str], limit: int
) -> List[Dict[str, Any]]:
    if company:
        cases = await failures.load_by_company(company)
    elif tool:
        cases = await failures.load_by_tool(tool)
    else:
        cases = await failures.load_recent(limit)
    if company and tool:
        cases = [case for case in cases if case.tool_name == tool]

    records: List[Dict[str, Any]] = [{"type": "stats", **(await failures.get_stats()).to_dict()}]
    records.extend({"type": "failure_case", **case.to_dict()} for case in cases[-limit:])
    records.append({"type": "few_shot", "text": await failures.to_few_shot_examples(limit)})
    return records


def cmd_failures(args: argparse.Namespace, config: AgentConfig, settings: StorageSettings) -> int:
    """Show failure case statistics and the few-shot preview."""
    _, failures = build_stores(settings)
    for record in asyncio.run(_failure_report(failures, args.company, args.tool, args.limit)):
        emit(record)
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="careerscout",
        description="CareerScout - job posting crawler agent",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  careerscout run https://careers.example.com --company Example
  careerscout resume example_1a2b3c4d.json
  careerscout resume --company Example
  careerscout checkpoints
  careerscout failures --tool click
""",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=os.environ.get("CAREERSCOUT_LOG_LEVEL", "INFO").upper(),
        help="Set logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=[fmt.value for fmt in LogFormat],
        default=os.environ.get("CAREERSCOUT_LOG_FORMAT", "json").lower(),
        help="Log output format (default: json)",
    )
    parser.add_argument("--config", help="Agent configuration file (YAML or JSON)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_browser_options(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--headed", action="store_true", help="Show the browser window")
        sub.add_argument(
            "--browser",
            choices=["chromium", "firefox", "webkit"],
            default="chromium",
            help="Browser engine (default: chromium)",
        )

    run_parser = subparsers.add_parser("run", help="Crawl a career site")
    run_parser.add_argument("url", help="Career site URL")
    run_parser.add_argument("--company", required=True, help="Company name")
    add_browser_options(run_parser)
    run_parser.set_defaults(func=cmd_run)

    resume_parser = subparsers.add_parser("resume", help="Resume a failed or suspended crawl")
    resume_parser.add_argument("locator", nargs="?", help="Checkpoint locator")
    resume_parser.add_argument("--company", help="Resume the latest checkpoint of this company")
    add_browser_options(resume_parser)
    resume_parser.set_defaults(func=cmd_resume)

    checkpoints_parser = subparsers.add_parser("checkpoints", help="List resumable checkpoints")
    checkpoints_parser.set_defaults(func=cmd_checkpoints)

    failures_parser = subparsers.add_parser("failures", help="Failure case statistics")
    failures_parser.add_argument("--company", help="Only cases for this company")
    failures_parser.add_argument("--tool", help="Only cases for this tool")
    failures_parser.add_argument("--limit", type=int, default=5, help="Cases to show (default: 5)")
    failures_parser.set_defaults(func=cmd_failures)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level, log_format=LogFormat(args.log_format))

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(0)

    try:
        config = load_agent_config(args.config)
        settings = StorageSettings()
        sys.exit(args.func(args, config, settings))
    except CareerScoutError as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()
