import json
import subprocess

import boto3
import pytest
from botocore.stub import Stubber

from desired_sync.actions import AwsCliAction, EksApiAction, build_action
from desired_sync.actions import awscli as awscli_module
from desired_sync.errors import ConfigurationMissing, ExternalActionFailed


UPDATE_RESPONSE = {"update": {"id": "abc-123", "status": "InProgress", "type": "ConfigUpdate"}}


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def fake_run(monkeypatch):
    calls = []
    outcome = {"result": _completed(stdout=json.dumps(UPDATE_RESPONSE))}

    def run(cmd, **kwargs):
        calls.append(cmd)
        if isinstance(outcome["result"], Exception):
            raise outcome["result"]
        return outcome["result"]

    monkeypatch.setattr(awscli_module.subprocess, "run", run)
    run.calls = calls
    run.outcome = outcome
    return run


## AWS CLI

def test_awscli_builds_update_command(fake_run, handle):
    result = AwsCliAction(executable="aws", profile="ops").apply(handle, 50)

    assert result.success
    assert result.details == {"update_id": "abc-123", "update_status": "InProgress"}
    (cmd,) = fake_run.calls
    assert cmd[:3] == ["aws", "eks", "update-nodegroup-config"]
    assert cmd[cmd.index("--scaling-config") + 1] == "desiredSize=50"
    assert cmd[cmd.index("--cluster-name") + 1] == "demo-cluster"
    assert cmd[cmd.index("--nodegroup-name") + 1] == "workers"
    assert cmd[cmd.index("--region") + 1] == "eu-west-1"
    assert cmd[cmd.index("--profile") + 1] == "ops"


def test_awscli_nonzero_exit_is_failure(fake_run, handle):
    fake_run.outcome["result"] = _completed(returncode=254, stderr="AccessDeniedException\n")

    result = AwsCliAction(executable="aws").apply(handle, 50)

    assert not result.success
    assert not result.invalid_value
    assert result.message == "AccessDeniedException"


def test_awscli_flags_rejected_value(fake_run, handle):
    fake_run.outcome["result"] = _completed(
        returncode=254,
        stderr="An error occurred (InvalidParameterException) when calling the "
               "UpdateNodegroupConfig operation: Minimum capacity 3 can't be greater than desired size 1",
    )

    result = AwsCliAction(executable="aws").apply(handle, 1)

    assert not result.success
    assert result.invalid_value


@pytest.mark.parametrize(
    "error",
    [FileNotFoundError("aws"), subprocess.TimeoutExpired(cmd="aws", timeout=1)],
)
def test_awscli_missing_binary_or_timeout_is_failure(fake_run, handle, error):
    fake_run.outcome["result"] = error

    result = AwsCliAction(executable="aws", timeout=1).apply(handle, 2)

    assert not result.success


def test_awscli_describe(fake_run, handle):
    fake_run.outcome["result"] = _completed(stdout=json.dumps({
        "nodegroup": {
            "status": "ACTIVE",
            "scalingConfig": {"minSize": 1, "maxSize": 10, "desiredSize": 4},
        }
    }))

    scaling = AwsCliAction(executable="aws").describe(handle)

    assert (scaling.min_size, scaling.max_size, scaling.desired_size) == (1, 10, 4)
    assert fake_run.calls[0][2] == "describe-nodegroup"


def test_awscli_describe_failure_raises(fake_run, handle):
    fake_run.outcome["result"] = _completed(returncode=254, stderr="ResourceNotFoundException")

    with pytest.raises(ExternalActionFailed):
        AwsCliAction(executable="aws").describe(handle)


## boto3

@pytest.fixture
def eks_client():
    client = boto3.client(
        "eks",
        region_name="eu-west-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    with Stubber(client) as stubber:
        yield client, stubber


def test_boto3_update_nodegroup_config(eks_client, handle):
    client, stubber = eks_client
    stubber.add_response(
        "update_nodegroup_config",
        UPDATE_RESPONSE,
        {
            "clusterName": "demo-cluster",
            "nodegroupName": "workers",
            "scalingConfig": {"desiredSize": 50},
        },
    )

    result = EksApiAction(client=client).apply(handle, 50)

    assert result.success
    assert result.details["update_id"] == "abc-123"
    stubber.assert_no_pending_responses()


def test_boto3_invalid_parameter_is_flagged(eks_client, handle):
    client, stubber = eks_client
    stubber.add_client_error(
        "update_nodegroup_config",
        service_error_code="InvalidParameterException",
        service_message="Minimum capacity 3 can't be greater than desired size 1",
        http_status_code=400,
    )

    result = EksApiAction(client=client).apply(handle, 1)

    assert not result.success
    assert result.invalid_value
    assert "Minimum capacity" in result.message


def test_boto3_other_client_error_is_plain_failure(eks_client, handle):
    client, stubber = eks_client
    stubber.add_client_error(
        "update_nodegroup_config",
        service_error_code="ResourceInUseException",
        http_status_code=409,
    )

    result = EksApiAction(client=client).apply(handle, 6)

    assert not result.success
    assert not result.invalid_value


def test_boto3_describe(eks_client, handle):
    client, stubber = eks_client
    stubber.add_response(
        "describe_nodegroup",
        {
            "nodegroup": {
                "nodegroupName": "workers",
                "clusterName": "demo-cluster",
                "status": "ACTIVE",
                "scalingConfig": {"minSize": 2, "maxSize": 20, "desiredSize": 8},
            }
        },
        {"clusterName": "demo-cluster", "nodegroupName": "workers"},
    )

    scaling = EksApiAction(client=client).describe(handle)

    assert scaling.desired_size == 8
    assert scaling.status == "ACTIVE"


## Factory

def test_build_action_by_name():
    assert isinstance(build_action("awscli"), AwsCliAction)
    assert isinstance(build_action("BOTO3"), EksApiAction)


def test_build_action_unknown_backend():
    with pytest.raises(ConfigurationMissing):
        build_action("terraform")
