"""
hum - Main Entry Point
CLI for provisioning services and configuring the remote Ansible host.
"""

import asyncio
import json
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from hum.config import get_config
from hum.core.errors import HumError, ProviderResolutionError
from hum.core.logger import console, setup_logging
from hum.core.prompts import Prompter
from hum.core.security import InputValidator, SecretsMasker, SecurityError
from hum.core.settings import ConfigurationService
from hum.models.project import DeploymentConfig, Environment, ProjectConfig
from hum.models.settings import AnsibleRemoteConfig
from hum.providers.github_cli import GitHubCliProvider
from hum.services.doctor import CheckStatus, DoctorService
from hum.services.inventory import InventoryService
from hum.services.provisioning import ProvisioningPipeline, build_registry
from hum.ssh.connector import SshConnector
from hum.ssh.key_deployer import KeyDeployer
from hum.utils.validators import validate_environment_name, validate_project_options

T = TypeVar("T")

# CLI app
app = typer.Typer(
    name="hum",
    help="Provision a service: project template, GitHub repository, CI/CD workflow and Ansible inventory.",
    add_completion=False,
)

template_app = typer.Typer(name="template", help="Manage project templates")
app.add_typer(template_app, name="template")

_state = {"verbose": False}


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose output",
    ),
):
    """hum provisioning CLI."""
    _state["verbose"] = verbose or get_config().verbose
    setup_logging(_state["verbose"])


def print_header(subtitle: str):
    """Print the application header."""
    console.print(Panel.fit(
        f"[bold blue]hum[/bold blue]\n[dim]{subtitle}[/dim]",
        border_style="blue",
    ))


def _run(coro: Awaitable[T]) -> T:
    """Run a command coroutine; known failures print 'Error: ...' and exit 1."""
    try:
        return asyncio.run(coro)
    except (HumError, SecurityError, OSError) as e:
        if _state["verbose"]:
            console.print_exception()
        else:
            # the registry has already printed the provider listing
            message = e.summary if isinstance(e, ProviderResolutionError) else str(e)
            console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
        raise typer.Exit(1)


def _fail(message: str) -> None:
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
    raise typer.Exit(1)


def _print_report(pipeline: ProvisioningPipeline) -> None:
    report = pipeline.report
    if report is None or not report.stages:
        return
    table = Table(title="Provisioning Stages")
    table.add_column("Stage", style="cyan")
    table.add_column("Provider")
    table.add_column("Status")
    table.add_column("Duration")
    for stage, result in report.stages.items():
        table.add_row(
            stage.value.replace("_", " ").title(),
            result.provider,
            "✅" if result.success else "❌",
            f"{result.duration_seconds:.1f}s",
        )
    console.print(table)


async def _provision(pipeline: ProvisioningPipeline, project_config: ProjectConfig) -> str:
    try:
        return await pipeline.provision(project_config)
    finally:
        _print_report(pipeline)
        for family in (pipeline.registry.source_control, pipeline.registry.cicd):
            for provider in family:
                close = getattr(provider, "close", None)
                if close is not None:
                    await close()


@app.command()
def init(
    name: str = typer.Option(..., "--name", "-n", help="Project name"),
    description: str = typer.Option("", "--description", "-d", help="Project description"),
    template: str = typer.Option("dotnet", "--template", "-t", help="Project template (e.g. dotnet, webapi, worker)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output directory"),
    source_control: str = typer.Option("github", "--source-control", help="Source control provider"),
    cicd: str = typer.Option("github", "--cicd", help="CI/CD provider"),
    infra: str = typer.Option("ansible", "--infra", help="Infrastructure provider"),
):
    """
    Initialize a new project using the GitHub API (token from 'hum config').

    Example:
        hum init --name svc1 --template webapi
    """
    print_header("Initialize project")
    is_valid, error = validate_project_options(name, output)
    if not is_valid:
        _fail(error)

    async def run() -> str:
        config_service = ConfigurationService()
        settings = await config_service.load_settings()
        token = settings.github_token or get_config().github.token
        if not token or not settings.github_username:
            raise HumError("GitHub credentials not configured. Run 'hum config --github-token ... --github-username ...' first.")

        project_config = ProjectConfig(
            name=name,
            description=description,
            template_type=template,
            output_path=output or str(Path.cwd() / name),
            source_control_provider=source_control,
            cicd_provider=cicd,
            infrastructure_provider=infra,
            git_config=settings.default_git_config,
            deployment_config=settings.default_deployment_config,
        )
        registry = build_registry(
            github_token=token,
            github_username=settings.github_username,
            use_github_api=True,
        )
        return await _provision(ProvisioningPipeline(registry), project_config)

    project_path = _run(run())
    console.print(f"\n[success]✅ Project '{name}' initialized[/success]")
    console.print(f"📁 Project path: {project_path}")


@app.command()
def create(
    name: str = typer.Argument(..., help="The name of the service to create"),
    template: str = typer.Option("dotnet-webapi", "--template", "-t", help="Template (e.g. dotnet-webapi, dotnet-worker)"),
    env: str = typer.Option("staging", "--env", "-e", help="Target environment (e.g. staging, production)"),
    host: Optional[str] = typer.Option(None, "--host", help="Target host server for deployment"),
    org: Optional[str] = typer.Option(None, "--org", help="GitHub organization"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Description of the service"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output directory for the project"),
):
    """
    🚀 Create a service with repository, CI/CD and deployment inventory (uses the gh CLI).

    Example:
        hum create svc1 --template webapi --env production --host web01.example.com
    """
    print_header("Create service")
    for is_valid, error in (validate_project_options(name, output, host), validate_environment_name(env)):
        if not is_valid:
            _fail(error)

    async def run() -> str:
        gh = GitHubCliProvider(organization=org)
        if not await gh.is_authenticated():
            raise HumError("GitHub CLI not authenticated. Please run 'gh auth login' first.")

        console.print(f"Target environment: {env}")
        if host:
            console.print(f"Target host: {host}")

        config_service = ConfigurationService()
        project_config = await config_service.create_default_project_config(
            name, description or f"{template} service for {name}", template,
        )
        if output:
            project_config.output_path = output
        project_config.deployment_config = DeploymentConfig(
            environments=[
                Environment(
                    name=env,
                    host_name=host or f"{name}-server",
                    deployment_path=f"/var/www/{name}",
                    environment_variables={
                        "ASPNETCORE_ENVIRONMENT": "Production" if env == "production" else "Staging",
                        "PROJECT_NAME": name,
                    },
                )
            ],
        )
        if org:
            project_config.additional_options["github_org"] = org

        registry = build_registry(organization=org)
        return await _provision(ProvisioningPipeline(registry), project_config)

    try:
        project_path = _run(run())
    except typer.Exit:
        console.print("\nTroubleshooting:")
        console.print("- Verify 'gh auth status' shows repository creation permissions")
        console.print("- Check that the template name is valid")
        console.print("- Ensure the target host is reachable for deployment")
        raise

    console.print(f"\n[success]✅ Service '{name}' created successfully![/success]")
    console.print(f"📁 Project path: {project_path}")
    console.print(f"\nView repository: gh repo view {f'{org}/' if org else ''}{name} --web")


@app.command()
def config(
    github_token: Optional[str] = typer.Option(None, "--github-token", help="GitHub personal access token"),
    github_username: Optional[str] = typer.Option(None, "--github-username", help="GitHub username"),
    git_username: Optional[str] = typer.Option(None, "--git-username", help="Default git user.name"),
    git_email: Optional[str] = typer.Option(None, "--git-email", help="Default git user.email"),
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
):
    """
    🔧 Configure hum settings.
    """
    async def run() -> None:
        config_service = ConfigurationService()
        settings = await config_service.load_settings()
        changed = False

        if github_token is not None:
            settings.github_token = github_token
            changed = True
        if github_username is not None:
            settings.github_username = github_username
            changed = True
        if git_username is not None:
            settings.default_git_config.username = git_username
            changed = True
        if git_email is not None:
            settings.default_git_config.email = git_email
            changed = True

        if changed:
            await config_service.update_settings(
                github_token=settings.github_token,
                github_username=settings.github_username,
                default_git_config=settings.default_git_config,
            )
            console.print("[success]Configuration updated.[/success]")

        if show or not changed:
            table = Table(title=f"Configuration ({config_service.settings_path})")
            table.add_column("Setting", style="cyan")
            table.add_column("Value")
            table.add_row("GitHub token", SecretsMasker.mask_token(settings.github_token))
            table.add_row("GitHub username", settings.github_username or "(not set)")
            table.add_row("Git user.name", settings.default_git_config.username or "(not set)")
            table.add_row("Git user.email", settings.default_git_config.email or "(not set)")
            table.add_row("Default branch", settings.default_git_config.default_branch)
            ansible = settings.ansible_config
            table.add_row("Ansible host", f"{ansible.user}@{ansible.host}" if ansible and ansible.host else "(not set)")
            table.add_row("Ansible key", ansible.private_key_path if ansible and ansible.private_key_path else "(not set)")
            console.print(table)

    _run(run())


@template_app.command("save")
def template_save(
    name: str = typer.Option(..., "--name", "-n", help="Template name"),
    project_path: Path = typer.Option(..., "--project-path", "-p", help="Path of the project to save as a template"),
):
    """Save a project's configuration as a template."""
    if not project_path.is_dir():
        _fail(f"Project directory not found: {project_path}")

    async def run() -> Path:
        config_service = ConfigurationService()
        settings = await config_service.load_settings()
        project_config = ProjectConfig(
            name=project_path.name,
            description=f"Template created from {project_path.name}",
            template_type="dotnet",
            output_path=str(project_path),
            source_control_provider="GitHub",
            cicd_provider="GitHub",
            infrastructure_provider="Ansible",
            git_config=settings.default_git_config,
            deployment_config=DeploymentConfig(),
        )
        return await config_service.save_project_template(name, project_config)

    path = _run(run())
    console.print(f"[success]Template '{name}' saved successfully.[/success] ({path})")


@template_app.command("list")
def template_list():
    """List available templates."""
    async def run() -> None:
        config_service = ConfigurationService()
        names = await config_service.list_project_templates()
        if not names:
            console.print("No templates found.")
            return
        console.print("Available templates:")
        for template_name in names:
            try:
                template = await config_service.load_project_template(template_name)
                console.print(f"- {template_name}: {template.description} ({template.template_type})", markup=False, highlight=False)
            except (HumError, ValueError, KeyError) as e:
                console.print(f"- {template_name}: [Error loading template: {e}]", markup=False)

    _run(run())


@template_app.command("use")
def template_use(
    name: str = typer.Option(..., "--name", "-n", help="Template name"),
    project_name: str = typer.Option(..., "--project-name", help="Name of the new project"),
    description: str = typer.Option(..., "--description", "-d", help="Description of the new project"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output directory"),
):
    """Create a new project from a saved template."""
    is_valid, error = validate_project_options(project_name, output)
    if not is_valid:
        _fail(error)

    async def run() -> str:
        config_service = ConfigurationService()
        settings = await config_service.load_settings()
        token = settings.github_token or get_config().github.token
        if not token or not settings.github_username:
            raise HumError("GitHub credentials not configured. Please run 'hum config' first.")

        project_config = await config_service.load_project_template(name)
        project_config.name = project_name
        project_config.description = description
        project_config.output_path = output or str(Path.cwd() / project_name)

        registry = build_registry(
            github_token=token,
            github_username=settings.github_username,
            use_github_api=True,
        )
        return await _provision(ProvisioningPipeline(registry), project_config)

    project_path = _run(run())
    console.print(f"[success]Project {project_name} created from template '{name}' successfully![/success]")
    console.print(f"Project path: {project_path}")


@app.command("ansible-config")
def ansible_config():
    """
    🤖 Interactively configure and validate the remote Ansible host.

    Settings are saved only after an SSH connection succeeds.
    """
    print_header("Configure Ansible orchestrator connection")

    async def run() -> bool:
        prompter = Prompter()
        config_service = ConfigurationService()
        settings = await config_service.load_settings()
        remote = settings.ansible_config or AnsibleRemoteConfig()

        remote.host = _prompt_valid(
            prompter, "Enter the remote host (e.g., your-ansible-server.example.com)", remote.host,
            InputValidator.validate_hostname,
        )
        remote.user = _prompt_valid(prompter, "Enter the SSH user", remote.user, InputValidator.validate_user)

        if prompter.confirm("Do you want to generate a new SSH key?"):
            try:
                pair = await KeyDeployer(key_dir=config_service.keys_dir, prompter=prompter).generate_and_deploy(remote)
                remote.private_key_path = str(pair.private_key_path)
            except HumError as e:
                console.print(f"\n[error]Key setup failed:[/error] {escape(str(e))}", highlight=False)
                console.print("Falling back to manual key entry...\n")
                remote.private_key_path = _prompt_for_private_key(prompter, remote.private_key_path)
        else:
            remote.private_key_path = _prompt_for_private_key(prompter, remote.private_key_path)

        result = await SshConnector(prompter=prompter).test_connection(remote)
        if not result.success:
            console.print("\n[error]❌ Failed to validate Ansible configuration. Settings were not saved.[/error]")
            return False

        await config_service.update_settings(ansible_config=remote)
        console.print("\n[success]✅ Ansible configuration saved and validated successfully![/success]")
        return True

    if not _run(run()):
        raise typer.Exit(1)


def _prompt_valid(prompter: Prompter, prompt: str, default: str, validate: Callable[[str], bool]) -> str:
    """Ask until the answer passes validate."""
    while True:
        answer = prompter.ask(prompt, default)
        try:
            validate(answer)
            return answer
        except SecurityError as e:
            console.print(f"[warning]{escape(str(e))}[/warning]", highlight=False)
            default = ""


def _prompt_for_private_key(prompter: Prompter, default: str) -> str:
    """Ask until the path names an existing file."""
    while True:
        path = prompter.ask("Enter the absolute path to your SSH private key", default)
        if path and Path(path).expanduser().is_file():
            return str(Path(path).expanduser())
        console.print(f"[warning]File not found: {escape(path or '(empty)')}[/warning]", highlight=False)
        default = ""


@app.command()
def inventory(
    output_json: bool = typer.Option(False, "--json", help="Print the raw listing only"),
):
    """
    📜 List the Ansible inventory (remote host, local ansible, or WSL).
    """
    async def run() -> bool:
        config_service = ConfigurationService()
        settings = await config_service.load_settings()
        service = InventoryService()

        availability = await service.detect(settings)
        if not availability.available:
            console.print("[error]❌ No Ansible installation found[/error]")
            console.print("   Run 'hum ansible-config' to configure a remote Ansible server,")
            console.print("   or install Ansible locally (or inside WSL).")
            return False
        if not output_json:
            console.print(f"Checking Ansible... ✅ {escape(availability.detail)}", highlight=False)

        listing = await service.list_inventory(settings)
        if not listing.success:
            console.print(f"[error]❌ Failed to list inventory:[/error] {escape(listing.error)}", highlight=False)
            return False
        if output_json:
            console.print(json.dumps({"method": listing.method.value, "inventory": listing.output}))
        else:
            console.print(listing.output, markup=False, highlight=False)
        return True

    if not _run(run()):
        raise typer.Exit(1)


@app.command()
def doctor():
    """
    🔍 Check required tools and configuration.
    """
    print_header("Environment diagnostics")

    async def run():
        return await DoctorService(ConfigurationService()).run_checks()

    results = _run(run())

    icons = {CheckStatus.OK: "✅", CheckStatus.WARNING: "⚠️", CheckStatus.FAILED: "❌"}
    table = Table(title="Prerequisites Check")
    table.add_column("Component", style="cyan")
    table.add_column("Status")
    table.add_column("Details")
    for result in results:
        details = result.detail + (f"\n[dim]{result.hint}[/dim]" if result.hint else "")
        table.add_row(result.name, icons[result.status], details)
    console.print(table)

    if all(result.passed for result in results):
        console.print("[success]✅ All critical checks passed! hum is ready to use.[/success]")
    else:
        console.print("[error]❌ Some checks failed. Please address the issues above before using hum.[/error]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
