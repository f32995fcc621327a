"""Main CLI application entry point."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv
from prompt_toolkit import PromptSession

# Load .env before provider credentials are read
_env_path = Path.cwd() / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

from .agents.registry import AgentConfigRegistry
from .config.cli_config import (
    CLIConfig,
    ensure_directories,
    get_action_log_path,
    get_store_path,
    get_summary_path,
    load_config,
)
from .controller.manager import ExecutionBackendManager
from .errors import StoreFailure
from .models.agents import Provider, RunnerKind
from .output.renderer import OutputRenderer
from .repl import create_repl
from .runtime.backend import BackendFactory
from .store.action_log import ActionLog
from .store.config_store import ConfigStore

logger = logging.getLogger(__name__)


@click.command()
@click.option(
    "-p", "--provider",
    type=click.Choice([p.value for p in Provider], case_sensitive=False),
    help="Default provider for agents without a saved config",
)
@click.option(
    "-m", "--model",
    help="Default model (default: the provider's default model)",
)
@click.option(
    "-r", "--runner",
    type=click.Choice([k.value for k in RunnerKind], case_sensitive=False),
    help="Execution runner (asked at startup if omitted)",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose logging",
)
@click.option(
    "--config", "config_path",
    type=click.Path(),
    help="Config file path",
)
def main(
    provider: Optional[str],
    model: Optional[str],
    runner: Optional[str],
    verbose: bool,
    config_path: Optional[str],
) -> None:
    """
    agentdeck - drive a team of LLM agents from the terminal.

    Start with defaults:
        agentdeck

    Use Gemini for agents without a saved config:
        agentdeck -p GEMINI

    Persist sessions across restarts:
        agentdeck -r SQLITE
    """
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Suppress noisy loggers in non-verbose mode
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("botocore").setLevel(logging.WARNING)

    try:
        asyncio.run(run_cli(
            provider=provider,
            model=model,
            runner=runner,
            config_path=config_path,
        ))
    except KeyboardInterrupt:
        pass
    except Exception as e:
        if verbose:
            logger.exception("CLI error")
        else:
            click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def apply_overrides(
    config: CLIConfig,
    provider: Optional[str] = None,
    model: Optional[str] = None,
    runner: Optional[str] = None,
) -> CLIConfig:
    """
    Apply command-line overrides to the loaded configuration.

    Choosing a provider without a model selects that provider's default model.

    Args:
        config: Loaded configuration
        provider: Provider override
        model: Model override
        runner: Runner kind override

    Returns:
        The same config, updated
    """
    if provider:
        config.default_provider = Provider.parse(provider)
        config.default_model = model
    elif model:
        config.default_model = model

    if runner:
        config.default_runner = RunnerKind.parse(runner)

    return config


async def select_runner(renderer: OutputRenderer) -> RunnerKind:
    """
    Ask which runner to start with.

    Args:
        renderer: Output renderer

    Returns:
        Chosen runner kind (IN_MEMORY on empty or invalid input)
    """
    kinds = list(RunnerKind)
    renderer.console.print("[cyan]Select execution runner:[/cyan]")
    for index, kind in enumerate(kinds, 1):
        renderer.console.print(f"  {index}. {kind.value}")

    answer = await PromptSession().prompt_async(f"Runner [1-{len(kinds)}, default 1]: ")
    if not answer.strip():
        return RunnerKind.IN_MEMORY
    try:
        return RunnerKind.parse(answer)
    except ValueError:
        renderer.render_warning(f"Invalid choice {answer.strip()!r}; using {RunnerKind.IN_MEMORY.value}.")
        return RunnerKind.IN_MEMORY


def load_prior_summary(path: Path) -> Optional[str]:
    """Read a previous session's summary file, if present."""
    if not path.is_file():
        return None
    try:
        text = path.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.warning(f"Could not read {path}: {e}")
        return None
    return text or None


async def run_cli(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    runner: Optional[str] = None,
    config_path: Optional[str] = None,
) -> None:
    """
    Async CLI runner.

    Args:
        provider: Default provider override
        model: Default model override
        runner: Runner kind
        config_path: Config file path
    """
    config = apply_overrides(load_config(config_path), provider, model, runner)
    ensure_directories(config)

    renderer = OutputRenderer(config)
    project_path = str(Path.cwd().resolve())

    store = ConfigStore(get_store_path(config))
    registry = AgentConfigRegistry(store, config.default_provider, config.default_model)
    try:
        registry.load_overrides()
    except StoreFailure as e:
        renderer.render_warning(f"Could not load saved agent configs, using defaults: {e}")

    kind = config.default_runner or await select_runner(renderer)

    prior_summary = load_prior_summary(get_summary_path(config))
    if prior_summary:
        renderer.render_dim("Loaded previous session summary.")

    action_log = ActionLog(get_action_log_path(config))
    factory = BackendFactory(config, store, project_path, prior_summary)
    manager = ExecutionBackendManager(registry, factory, config.app_id, action_log)

    await manager.start(kind)

    repl = create_repl(
        manager=manager,
        registry=registry,
        store=store,
        config=config,
        renderer=renderer,
        action_log=action_log,
        project_path=project_path,
    )

    try:
        await repl.run()
    finally:
        await manager.aclose()


if __name__ == "__main__":
    main()
