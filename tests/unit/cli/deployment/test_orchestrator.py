"""Unit tests for the multi-workload deploy orchestrator."""

from __future__ import annotations

from unittest.mock import MagicMock, call

import pytest

from src.cli.deployment.order import (
    ConflictingOrderTagError,
    EmptyWorkloadSetError,
    InvalidOrderTagError,
)
from src.cli.deployment.orchestrator import (
    DeployOptions,
    DeployOrchestrator,
    DeployStatus,
)
from src.infra.errors import (
    DeploymentError,
    NoInfrastructureChangesError,
    NoSuchEnvironmentError,
    NoSuchWorkloadError,
    StoreError,
)
from src.infra.store import Environment, Workload


def _workload(name: str, wkld_type: str = "Load Balanced Web Service") -> Workload:
    return Workload(app="app", name=name, type=wkld_type)


@pytest.fixture
def mock_store() -> MagicMock:
    """Store where env "test" and workloads fe, be, worker are registered."""
    store = MagicMock()
    registered = {name: _workload(name) for name in ("fe", "be", "worker")}
    store.get_environment.return_value = Environment(app="app", name="test")
    store.list_environments.return_value = [Environment(app="app", name="test")]
    store.list_workloads.return_value = list(registered.values())

    def get_workload(app: str, name: str) -> Workload:
        if name not in registered:
            raise NoSuchWorkloadError(app, name)
        return registered[name]

    store.get_workload.side_effect = get_workload
    return store


@pytest.fixture
def mock_workspace() -> MagicMock:
    workspace = MagicMock()
    workspace.list_environments.return_value = ["test"]
    workspace.list_workloads.return_value = ["be", "fe", "worker"]
    return workspace


@pytest.fixture
def mock_deployer() -> MagicMock:
    return MagicMock()


@pytest.fixture
def mock_console() -> MagicMock:
    return MagicMock()


@pytest.fixture
def make_orchestrator(mock_store, mock_workspace, mock_deployer, mock_console):
    def _make(**overrides: object) -> DeployOrchestrator:
        values: dict[str, object] = {"app": "app", "env": "test", "deploy_env": False}
        values.update(overrides)
        return DeployOrchestrator(
            DeployOptions(**values),  # type: ignore[arg-type]
            store=mock_store,
            workspace=mock_workspace,
            deployer=mock_deployer,
            console=mock_console,
        )

    return _make


def _deployed(mock_deployer: MagicMock) -> list[str]:
    return [c.args[2].name for c in mock_deployer.deploy_workload.call_args_list]


class TestValidate:
    def test_invalid_token_fails_before_any_io(
        self, make_orchestrator, mock_store, mock_deployer
    ) -> None:
        orchestrator = make_orchestrator(workloads=("fe/abc",))

        with pytest.raises(InvalidOrderTagError):
            orchestrator.run()

        mock_store.get_environment.assert_not_called()
        mock_deployer.deploy_workload.assert_not_called()

    def test_conflicting_orders_fail(self, make_orchestrator) -> None:
        with pytest.raises(ConflictingOrderTagError):
            make_orchestrator(workloads=("fe/1", "fe/2")).run()

    def test_order_above_configured_maximum_fails(self, make_orchestrator) -> None:
        with pytest.raises(InvalidOrderTagError):
            make_orchestrator(workloads=("fe/6",), max_order=5).run()

    def test_blank_app_fails(self, make_orchestrator) -> None:
        with pytest.raises(DeploymentError, match="application name is required"):
            make_orchestrator(app=" ", workloads=("fe",)).run()


class TestDeployOrder:
    def test_groups_deploy_in_ascending_order(
        self, make_orchestrator, mock_deployer
    ) -> None:
        results = make_orchestrator(workloads=("worker", "fe/2", "be/1")).run()

        assert _deployed(mock_deployer) == ["be", "fe", "worker"]
        assert [r.status for r in results] == [DeployStatus.DEPLOYED] * 3
        assert [r.group for r in results] == ["1", "2", "unordered"]

    def test_deploy_all_uses_store_catalog(
        self, make_orchestrator, mock_deployer, mock_store
    ) -> None:
        make_orchestrator(workloads=("be/1",), deploy_all=True).run()

        mock_store.list_workloads.assert_called_once_with("app")
        assert _deployed(mock_deployer) == ["be", "fe", "worker"]

    def test_workloads_deploy_to_selected_environment(
        self, make_orchestrator, mock_deployer
    ) -> None:
        make_orchestrator(workloads=("fe",)).run()

        mock_deployer.deploy_workload.assert_called_once_with(
            "app", "test", _workload("fe")
        )

    def test_no_changes_is_reported_and_not_fatal(
        self, make_orchestrator, mock_deployer
    ) -> None:
        def deploy(app: str, env: str, workload: Workload) -> None:
            if workload.name == "be":
                raise NoInfrastructureChangesError(
                    DeploymentError("deploy workload be: no infrastructure changes")
                )

        mock_deployer.deploy_workload.side_effect = deploy

        results = make_orchestrator(workloads=("be/1", "fe/2")).run()

        assert [(r.name, r.status) for r in results] == [
            ("be", DeployStatus.NO_CHANGES),
            ("fe", DeployStatus.DEPLOYED),
        ]

    def test_failure_finishes_group_and_skips_later_groups(
        self, make_orchestrator, mock_deployer
    ) -> None:
        failure = DeploymentError("deploy workload be: command exited with code 1")

        def deploy(app: str, env: str, workload: Workload) -> None:
            if workload.name == "be":
                raise failure

        mock_deployer.deploy_workload.side_effect = deploy
        orchestrator = make_orchestrator(workloads=("be/1", "fe/1", "worker/2"))

        with pytest.raises(DeploymentError) as excinfo:
            orchestrator.run()

        assert excinfo.value is failure
        assert _deployed(mock_deployer) == ["be", "fe"]
        assert [(r.name, r.status) for r in orchestrator.results] == [
            ("be", DeployStatus.FAILED),
            ("fe", DeployStatus.DEPLOYED),
            ("worker", DeployStatus.SKIPPED),
        ]


    def test_os_error_is_recorded_as_failure(
        self, make_orchestrator, mock_deployer, mock_console
    ) -> None:
        def deploy(app: str, env: str, workload: Workload) -> None:
            if workload.name == "fe":
                raise PermissionError(13, "Permission denied")

        mock_deployer.deploy_workload.side_effect = deploy
        orchestrator = make_orchestrator(workloads=("be/1", "fe/2", "worker/3"))

        with pytest.raises(DeploymentError, match="deploy workload fe"):
            orchestrator.run()

        assert [(r.name, r.status) for r in orchestrator.results] == [
            ("be", DeployStatus.DEPLOYED),
            ("fe", DeployStatus.FAILED),
            ("worker", DeployStatus.SKIPPED),
        ]
        # Summary table is the last thing printed
        assert mock_console.print.call_args.args[0].title == "Deployment summary"


class TestEnvironment:
    def test_single_environment_is_selected_automatically(
        self, make_orchestrator, mock_console
    ) -> None:
        orchestrator = make_orchestrator(env=None, workloads=("fe",))

        orchestrator.run()

        assert orchestrator.env.name == "test"
        mock_console.prompt_choice.assert_not_called()

    def test_prompts_when_several_environments_exist(
        self, make_orchestrator, mock_console, mock_workspace, mock_store
    ) -> None:
        mock_workspace.list_environments.return_value = ["prod", "test"]
        mock_console.prompt_choice.return_value = 2
        orchestrator = make_orchestrator(env=None, workloads=("fe",))

        orchestrator.run()

        title, choices = mock_console.prompt_choice.call_args.args
        assert choices == [("test", ""), ("prod", "uninitialized")]
        assert orchestrator.env.name == "prod"

    def test_no_environments_anywhere_fails(
        self, make_orchestrator, mock_store, mock_workspace
    ) -> None:
        mock_store.list_environments.return_value = []
        mock_workspace.list_environments.return_value = []

        with pytest.raises(DeploymentError, match="no environments found"):
            make_orchestrator(env=None, workloads=("fe",)).run()

    def test_error_listing_environments_is_wrapped(
        self, make_orchestrator, mock_store
    ) -> None:
        mock_store.list_environments.side_effect = StoreError("some error")

        with pytest.raises(StoreError, match="get environment name: some error"):
            make_orchestrator(env=None, workloads=("fe",)).run()

    def test_error_getting_environment_is_wrapped(
        self, make_orchestrator, mock_store
    ) -> None:
        mock_store.get_environment.side_effect = StoreError("some error")

        with pytest.raises(
            StoreError, match="get environment from config store: some error"
        ):
            make_orchestrator(workloads=("fe",)).run()

    def test_environment_missing_everywhere_fails(
        self, make_orchestrator, mock_store, mock_workspace, mock_deployer
    ) -> None:
        mock_store.get_environment.side_effect = NoSuchEnvironmentError("app", "test")
        mock_workspace.list_environments.return_value = []

        with pytest.raises(
            DeploymentError, match='environment "test" does not exist in the workspace'
        ):
            make_orchestrator(workloads=("fe",)).run()

        mock_deployer.deploy_workload.assert_not_called()

    def test_prompts_to_initialize_missing_environment(
        self, make_orchestrator, mock_store, mock_console, mock_deployer
    ) -> None:
        mock_store.get_environment.side_effect = NoSuchEnvironmentError("app", "test")
        mock_console.confirm.return_value = True

        make_orchestrator(workloads=("fe",), deploy_env=None).run()

        assert mock_console.confirm.call_args_list[0] == call(
            'Environment "test" does not exist in app "app". Initialize it?'
        )
        mock_store.create_environment.assert_called_once_with(
            Environment(app="app", name="test")
        )
        # Initializing implies deploying the environment
        mock_deployer.deploy_environment.assert_called_once_with("app", "test")

    def test_declined_initialization_fails(
        self, make_orchestrator, mock_store, mock_console
    ) -> None:
        mock_store.get_environment.side_effect = NoSuchEnvironmentError("app", "test")
        mock_console.confirm.return_value = False

        with pytest.raises(DeploymentError, match="env test does not exist in app app"):
            make_orchestrator(workloads=("fe",)).run()

        mock_store.create_environment.assert_not_called()

    def test_initialized_but_not_deployed_fails(
        self, make_orchestrator, mock_store, mock_deployer
    ) -> None:
        mock_store.get_environment.side_effect = NoSuchEnvironmentError("app", "test")

        with pytest.raises(
            DeploymentError,
            match="environment test was initialized but has not been deployed",
        ):
            make_orchestrator(
                workloads=("fe",), yes_init_env=True, deploy_env=False
            ).run()

        mock_store.create_environment.assert_called_once()
        mock_deployer.deploy_workload.assert_not_called()

    def test_deploy_env_flag_deploys_environment_before_workloads(
        self, make_orchestrator, mock_deployer
    ) -> None:
        make_orchestrator(workloads=("fe",), deploy_env=True).run()

        assert [c[0] for c in mock_deployer.method_calls] == [
            "deploy_environment",
            "deploy_workload",
        ]

    def test_prompts_to_deploy_environment(
        self, make_orchestrator, mock_console, mock_deployer
    ) -> None:
        mock_console.confirm.return_value = False

        make_orchestrator(workloads=("fe",), deploy_env=None).run()

        mock_console.confirm.assert_called_once()
        mock_deployer.deploy_environment.assert_not_called()

    def test_environment_only_in_store_is_not_deployed(
        self, make_orchestrator, mock_workspace, mock_deployer, mock_console
    ) -> None:
        mock_workspace.list_environments.return_value = []

        make_orchestrator(workloads=("fe",), deploy_env=None).run()

        mock_console.confirm.assert_not_called()
        mock_deployer.deploy_environment.assert_not_called()

    def test_unchanged_environment_does_not_abort(
        self, make_orchestrator, mock_deployer
    ) -> None:
        mock_deployer.deploy_environment.side_effect = NoInfrastructureChangesError(
            DeploymentError("deploy environment test: no infrastructure changes")
        )

        make_orchestrator(workloads=("fe",), deploy_env=True).run()

        mock_deployer.deploy_workload.assert_called_once()


class TestWorkloadSelection:
    def test_prompts_for_workload_when_none_given(
        self, make_orchestrator, mock_console, mock_deployer
    ) -> None:
        mock_console.prompt_choice.return_value = 2

        make_orchestrator().run()

        assert mock_console.prompt_choice.call_args.args[0] == (
            "Select a service or job in your workspace"
        )
        assert _deployed(mock_deployer) == ["fe"]

    def test_cancelled_selection_is_an_empty_workload_set(
        self, make_orchestrator, mock_console
    ) -> None:
        mock_console.prompt_choice.return_value = 0

        with pytest.raises(EmptyWorkloadSetError):
            make_orchestrator().run()

    def test_empty_workspace_is_an_empty_workload_set(
        self, make_orchestrator, mock_workspace
    ) -> None:
        mock_workspace.list_workloads.return_value = []

        with pytest.raises(EmptyWorkloadSetError):
            make_orchestrator().run()


class TestWorkloadInitialization:
    def test_unregistered_workload_is_initialized_from_manifest(
        self, make_orchestrator, mock_workspace, mock_store, mock_deployer
    ) -> None:
        mock_workspace.list_workloads.return_value = ["mailer"]
        mock_workspace.read_workload_manifest.return_value = {
            "name": "mailer",
            "type": "Scheduled Job",
        }

        make_orchestrator(workloads=("mailer",), yes_init_workload=True).run()

        mailer = _workload("mailer", "Scheduled Job")
        mock_store.create_workload.assert_called_once_with(mailer)
        mock_deployer.deploy_workload.assert_called_once_with("app", "test", mailer)

    def test_declined_workload_initialization_fails_the_workload(
        self, make_orchestrator, mock_workspace, mock_console, mock_store
    ) -> None:
        mock_workspace.list_workloads.return_value = ["mailer"]
        mock_console.confirm.return_value = False

        with pytest.raises(
            DeploymentError, match="workload mailer is not initialized in app app"
        ):
            make_orchestrator(workloads=("mailer",)).run()

        mock_store.create_workload.assert_not_called()

    def test_unknown_workload_fails(self, make_orchestrator) -> None:
        with pytest.raises(DeploymentError, match="workload ghost does not exist"):
            make_orchestrator(workloads=("ghost",)).run()

    def test_manifest_without_type_fails(
        self, make_orchestrator, mock_workspace
    ) -> None:
        mock_workspace.list_workloads.return_value = ["mailer"]
        mock_workspace.read_workload_manifest.return_value = {"name": "mailer"}

        with pytest.raises(DeploymentError, match="missing 'type'"):
            make_orchestrator(workloads=("mailer",), yes_init_workload=True).run()
