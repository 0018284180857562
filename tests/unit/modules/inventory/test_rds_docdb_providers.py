import pytest

from app.modules.inventory.adapters.aws.docdb import DocumentDbProvider
from app.modules.inventory.adapters.aws.rds import RdsProvider


@pytest.mark.asyncio
async def test_rds_instances_follow_marker(fake_clients, aws_client):
    aws_client.describe_db_instances.side_effect = [
        {"DBInstances": [{"DBInstanceIdentifier": "db-1", "MultiAZ": True}], "Marker": "m"},
        {"DBInstances": [{"DBInstanceIdentifier": "db-2"}]},
    ]

    instances = await RdsProvider(fake_clients).list_instances("production")

    assert [i.db_instance_identifier for i in instances] == ["db-1", "db-2"]
    assert instances[0].model_dump(by_alias=True)["multiAZ"] is True
    assert aws_client.describe_db_instances.call_args_list[1].kwargs == {"Marker": "m"}


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["DBInstanceNotFound", "DBInstanceNotFoundFault"])
async def test_missing_rds_instance(fake_clients, aws_client, client_error, code):
    aws_client.describe_db_instances.side_effect = client_error(code)

    assert await RdsProvider(fake_clients).get_instance("production", "db-x") is None


@pytest.mark.asyncio
async def test_missing_rds_cluster(fake_clients, aws_client, client_error):
    aws_client.describe_db_clusters.side_effect = client_error("DBClusterNotFoundFault")

    assert await RdsProvider(fake_clients).get_cluster("production", "c-x") is None


@pytest.mark.asyncio
async def test_rds_instance_maps_endpoint_and_security_groups(fake_clients, aws_client):
    aws_client.describe_db_instances.return_value = {
        "DBInstances": [
            {
                "DBInstanceIdentifier": "db-1",
                "Endpoint": {"Address": "db-1.example", "Port": 5432},
                "VpcSecurityGroups": [{"VpcSecurityGroupId": "sg-1"}, {"Status": "active"}],
                "TagList": [{"Key": "env", "Value": "prod"}],
            }
        ]
    }

    instance = await RdsProvider(fake_clients).get_instance("production", "db-1")

    assert instance.endpoint.address == "db-1.example"
    assert instance.vpc_security_groups == ["sg-1"]
    assert instance.tags == {"env": "prod"}


@pytest.mark.asyncio
async def test_snapshot_filter_is_passed_only_when_given(fake_clients, aws_client):
    aws_client.describe_db_snapshots.return_value = {"DBSnapshots": []}
    provider = RdsProvider(fake_clients)

    await provider.list_snapshots("production")
    await provider.list_snapshots("production", "db-1")

    calls = aws_client.describe_db_snapshots.call_args_list
    assert calls[0].kwargs == {}
    assert calls[1].kwargs == {"DBInstanceIdentifier": "db-1"}


@pytest.mark.asyncio
async def test_docdb_listings_drop_other_engines(fake_clients, aws_client):
    aws_client.describe_db_clusters.return_value = {
        "DBClusters": [
            {"DBClusterIdentifier": "docs", "Engine": "docdb"},
            {"DBClusterIdentifier": "aurora", "Engine": "aurora-postgresql"},
        ]
    }

    clusters = await DocumentDbProvider(fake_clients).list_clusters("production")

    assert [c.db_cluster_identifier for c in clusters] == ["docs"]


@pytest.mark.asyncio
async def test_docdb_get_of_non_docdb_cluster_is_none(fake_clients, aws_client):
    aws_client.describe_db_clusters.return_value = {
        "DBClusters": [{"DBClusterIdentifier": "aurora", "Engine": "aurora-mysql"}]
    }

    assert await DocumentDbProvider(fake_clients).get_cluster("production", "aurora") is None


@pytest.mark.asyncio
async def test_docdb_uses_its_own_service_client(fake_clients, aws_client):
    aws_client.describe_db_instances.return_value = {"DBInstances": []}

    await DocumentDbProvider(fake_clients).list_instances("development")

    assert fake_clients.requests == [("development", "docdb")]


@pytest.mark.asyncio
async def test_instance_and_cluster_parameter_groups(fake_clients, aws_client):
    aws_client.describe_db_parameter_groups.return_value = {
        "DBParameterGroups": [
            {"DBParameterGroupName": "pg16", "DBParameterGroupFamily": "postgres16"}
        ]
    }
    aws_client.describe_db_cluster_parameter_groups.return_value = {
        "DBClusterParameterGroups": [
            {"DBClusterParameterGroupName": "aurora16", "DBParameterGroupFamily": "aurora-postgresql16"}
        ]
    }
    provider = RdsProvider(fake_clients)

    [instance_group] = await provider.list_parameter_groups("production")
    [cluster_group] = await provider.list_cluster_parameter_groups("production")

    assert (instance_group.name, instance_group.family) == ("pg16", "postgres16")
    assert cluster_group.name == "aurora16"


@pytest.mark.asyncio
async def test_cluster_snapshots_use_storage_encrypted(fake_clients, aws_client):
    aws_client.describe_db_cluster_snapshots.return_value = {
        "DBClusterSnapshots": [
            {
                "DBClusterSnapshotIdentifier": "snap-1",
                "DBClusterIdentifier": "aurora",
                "StorageEncrypted": True,
            }
        ]
    }

    [snapshot] = await RdsProvider(fake_clients).list_cluster_snapshots("production", "aurora")

    assert snapshot.db_identifier == "aurora"
    assert snapshot.encrypted is True
    assert aws_client.describe_db_cluster_snapshots.call_args.kwargs == {
        "DBClusterIdentifier": "aurora"
    }


@pytest.mark.asyncio
async def test_docdb_snapshots_treat_missing_engine_as_docdb(fake_clients, aws_client):
    aws_client.describe_db_cluster_snapshots.return_value = {
        "DBClusterSnapshots": [
            {"DBClusterSnapshotIdentifier": "docs-snap"},
            {"DBClusterSnapshotIdentifier": "aurora-snap", "Engine": "aurora-mysql"},
        ]
    }

    snapshots = await DocumentDbProvider(fake_clients).list_snapshots("production")

    assert [s.snapshot_identifier for s in snapshots] == ["docs-snap"]
    assert snapshots[0].engine == "docdb"
