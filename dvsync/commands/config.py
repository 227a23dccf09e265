import click
from dvsync.cli_utils import handle_errors
from dvsync.config import get_config_path, get_default_config, load_config, save_config
import json
import os


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("generate")
@click.option("--path", "target", type=click.Path(dir_okay=False), default=None,
              help="Where to write the example (default: ~/.dvsync/config.json)")
def generate_config(target):
    """Generate an example configuration file."""
    example = get_default_config()
    example["diversion"]["repository_id"] = "dv.repo.your-repository-id"
    example["diversion"]["working_directory"] = "~/dv/workspace"

    config_path = os.path.expanduser(target) if target else str(get_config_path())
    if os.path.exists(config_path):
        click.echo(f"Configuration already exists at {config_path}. Example configuration:\n{json.dumps(example, indent=2)}")
        return
    written = save_config(example, config_path)
    click.echo(f"Example configuration written to {written}. Example configuration:\n{json.dumps(example, indent=2)}")


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@click.pass_context
@handle_errors
def show_config(ctx, pretty, path):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    Use --path to see which config file is being used.
    """
    obj = ctx.find_root().obj or {}
    config_path = obj.get("config_path")

    if path:
        print(json.dumps({"config_path": str(config_path or get_config_path())}))
        return

    config = load_config(config_path)

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))
