"""lcod-registry CLI — maintain and verify the LCOD component registry."""

import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from lcod_registry import __version__
from lcod_registry.config import REPOSITORIES, RegistryConfig
from lcod_registry.errors import RegistryError
from lcod_registry.utils.git_ops import GitRevisionLookup

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _fail(error: Exception):
    """Report *error* on stderr and exit with status 1."""
    err_console.print(f"{type(error).__name__}: {error}", style="red", markup=False, highlight=False)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--registry-dir", "-r", default=".", type=click.Path(file_okay=False),
    help="Registry root (holds catalog.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stderr")
@click.pass_context
def main(ctx: click.Context, registry_dir: str, verbose: bool):
    """lcod-registry — versioned catalog of LCOD components.

    Imports component manifests from an lcod-components checkout, pins the
    tooling/std catalogue to it, and validates the registry on disk.

    Collaborating repositories are found through COMPONENTS_REPO_PATH,
    SPEC_REPO_PATH and KERNEL_REPO_PATH, then lcod-registry.yaml, then
    sibling directories of the registry root.
    """
    _configure_logging(verbose)
    obj = ctx.ensure_object(dict)
    obj.setdefault("revision_lookup", GitRevisionLookup())
    try:
        obj["config"] = RegistryConfig.load(registry_dir, obj.get("environ"))
    except RegistryError as e:
        _fail(e)


# ── Import ───────────────────────────────────────────────────────────


@main.command(name="import-components")
@click.pass_obj
def import_components(obj: dict):
    """Import every component listed in registry/components.std.json."""
    from lcod_registry.registry.local_registry import LocalRegistry

    config: RegistryConfig = obj["config"]
    try:
        reg = LocalRegistry(config.registry_root, registry_id=config.registry_id)
        result = reg.import_components(
            config.require_components_root(),
            obj["revision_lookup"],
            source_url=config.source_url,
        )
    except (RegistryError, OSError) as e:
        _fail(e)

    if result.total == 0:
        console.print("No components found in manifest.")
        return

    console.print(f"Imported {len(result.imported)} components from {result.manifest_path}")
    if result.skipped:
        err_console.print(f"Skipped {result.skipped} malformed entries", style="yellow")


# ── Catalogues ───────────────────────────────────────────────────────


@main.command(name="update-catalogues")
@click.option(
    "--manifest-path", default=None,
    help="Upstream manifest to pin (default: registry/components.std.json)",
)
@click.pass_obj
def update_catalogues_cmd(obj: dict, manifest_path: str | None):
    """Pin tooling/std to the current lcod-components commit."""
    from lcod_registry.catalogues.pointer import STRUCTURED_MANIFEST, build_std_entry, update_catalogues

    config: RegistryConfig = obj["config"]
    try:
        entry = build_std_entry(config, obj["revision_lookup"], manifest_path or STRUCTURED_MANIFEST)
        result = update_catalogues(config.registry_root, entry)
    except (RegistryError, OSError) as e:
        _fail(e)

    for name, changed in result.changed.items():
        console.print(f"{name} {'updated' if changed else 'up-to-date'}")


@main.command(name="verify-catalogues")
@click.pass_obj
def verify_catalogues(obj: dict):
    """Verify the tooling/std pointer against the upstream checkout."""
    from lcod_registry.catalogues.validator import CatalogueValidator

    config: RegistryConfig = obj["config"]
    try:
        CatalogueValidator(config, obj["revision_lookup"]).verify()
    except (RegistryError, OSError) as e:
        _fail(e)

    console.print("Tooling/std catalogue pointer verified successfully.")


# ── Validate ─────────────────────────────────────────────────────────


@main.command()
@click.pass_obj
def validate(obj: dict):
    """Validate catalog.json, every versions.json, and every manifest."""
    from lcod_registry.registry.validator import validate_registry

    config: RegistryConfig = obj["config"]
    result = validate_registry(config.registry_root)

    if not result.passed:
        err_console.print("Registry validation failed:", style="red")
        for message in result.messages:
            err_console.print(f"- {message}", markup=False, highlight=False)
        err_console.print(result.summary(), markup=False, highlight=False)
        sys.exit(1)

    console.print("Registry validation passed.")
    console.print(result.summary(), markup=False, highlight=False)


# ── Inspect ──────────────────────────────────────────────────────────


@main.command(name="list")
@click.pass_obj
def list_packages(obj: dict):
    """List catalogued packages with their newest version."""
    from lcod_registry.registry.local_registry import LocalRegistry

    config: RegistryConfig = obj["config"]
    reg = LocalRegistry(config.registry_root, registry_id=config.registry_id)
    try:
        entries = reg.list_packages()
        rows = []
        for entry in entries:
            index = reg.load_versions(entry)
            latest = index.latest.version if index.latest else "-"
            rows.append((entry.id, latest, str(len(index.versions)), entry.registry_id))
    except (RegistryError, OSError) as e:
        _fail(e)

    if not rows:
        console.print("[yellow]Registry is empty.[/]")
        return

    table = Table(title=f"Registry ({len(rows)} packages)")
    table.add_column("Package", style="cyan")
    table.add_column("Latest")
    table.add_column("Versions", justify="right")
    table.add_column("Registry")
    for row in rows:
        table.add_row(*row)

    console.print(table)


@main.command(name="config")
@click.pass_obj
def show_config(obj: dict):
    """Show where collaborating repositories were resolved."""
    config: RegistryConfig = obj["config"]

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("registry root", str(config.registry_root))
    for repo in REPOSITORIES:
        root = getattr(config, f"{repo.key}_root")
        table.add_row(f"{repo.key} root", str(root) if root else "[red](unresolved)[/]")
    table.add_row("source url", config.source_url)
    table.add_row("registry id", config.registry_id)
    table.add_row("catalogue priority", str(config.catalogue_priority))

    console.print(table)


if __name__ == "__main__":
    main()
