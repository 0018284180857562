from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from botocore.exceptions import ClientError

from app.modules.inventory.adapters.aws.base import AWSResourceProvider
from app.modules.inventory.schemas.common import tags_from_list
from app.modules.inventory.schemas.ecr import (
    EcrImage,
    EcrLifecyclePolicy,
    EcrRepository,
    EcrRepositoryPolicy,
    EcrScanFinding,
    EcrScanSummary,
)
from app.shared.adapters.aws_enrichment import Enrichment
from app.shared.adapters.aws_errors import aws_error_codes, aws_operation
from app.shared.adapters.aws_pagination import aws_token_pages, collect_pages

logger = structlog.get_logger()

repository_not_found = aws_error_codes("RepositoryNotFoundException")
scan_not_found = aws_error_codes("ScanNotFoundException", "ImageNotFoundException")
lifecycle_policy_not_found = aws_error_codes("LifecyclePolicyNotFoundException")
repository_policy_not_found = aws_error_codes("RepositoryPolicyNotFoundException")

IMAGES_PAGE_SIZE = 100
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def map_repository(repo: Dict[str, Any]) -> EcrRepository:
    scanning = repo.get("imageScanningConfiguration") or {}
    encryption = repo.get("encryptionConfiguration") or {}
    return EcrRepository(
        repository_name=repo.get("repositoryName", ""),
        repository_arn=repo.get("repositoryArn", ""),
        repository_uri=repo.get("repositoryUri", ""),
        registry_id=repo.get("registryId", ""),
        created_at=repo.get("createdAt"),
        image_tag_mutability=repo.get("imageTagMutability") or "MUTABLE",
        scan_on_push=scanning.get("scanOnPush", False),
        encryption_type=encryption.get("encryptionType"),
        kms_key=encryption.get("kmsKey"),
    )


def map_image(repository_name: str, image: Dict[str, Any]) -> EcrImage:
    return EcrImage(
        repository_name=repository_name,
        image_digest=image.get("imageDigest", ""),
        image_tags=image.get("imageTags") or [],
        image_size_in_bytes=image.get("imageSizeInBytes", 0),
        image_pushed_at=image.get("imagePushedAt"),
        image_manifest_media_type=image.get("imageManifestMediaType"),
        last_recorded_pull_time=image.get("lastRecordedPullTime"),
        artifact_media_type=image.get("artifactMediaType"),
    )


def map_scan_findings(
    image_digest: str, image_tags: List[str], findings: Dict[str, Any]
) -> EcrScanSummary:
    return EcrScanSummary(
        image_digest=image_digest,
        image_tags=image_tags,
        scan_completed_at=findings.get("imageScanCompletedAt"),
        vulnerability_source_updated_at=findings.get("vulnerabilitySourceUpdatedAt"),
        finding_severity_counts=dict(findings.get("findingSeverityCounts") or {}),
        findings=[
            EcrScanFinding(
                name=f.get("name", ""),
                description=f.get("description"),
                severity=f.get("severity") or "UNDEFINED",
                uri=f.get("uri"),
            )
            for f in findings.get("findings") or []
        ],
    )


def _pushed_at(image: EcrImage) -> datetime:
    pushed = image.image_pushed_at
    if pushed is None:
        return _EPOCH
    if pushed.tzinfo is None:
        return pushed.replace(tzinfo=timezone.utc)
    return pushed


def apply_tags(repo: EcrRepository, response: Dict[str, Any]) -> EcrRepository:
    return repo.model_copy(update={"tags": tags_from_list(response.get("tags"))})


class EcrProvider(AWSResourceProvider):
    service_name = "ecr"

    def _tag_enrichment(self, client: Any) -> Enrichment[EcrRepository, Any]:
        return Enrichment(
            name="ecr.tags",
            fetch=lambda r: client.list_tags_for_resource(resourceArn=r.repository_arn),
            apply=apply_tags,
        )

    @aws_operation("ecr.describe_repositories")
    async def list_repositories(self, account_name: str) -> List[EcrRepository]:
        """Every repository, with tags fetched in batches of the enricher width."""
        async with self._client(account_name) as client:
            repositories = await collect_pages(
                aws_token_pages(
                    client.describe_repositories,
                    items_key="repositories",
                    request_token="nextToken",
                    transform=map_repository,
                ),
                operation_name="ecr.describe_repositories",
            )
            result = await self.enricher.enrich(
                repositories, [self._tag_enrichment(client)]
            )
        logger.debug(
            "ecr_repositories_listed",
            account=account_name,
            count=len(result.items),
            tag_failures=len(result.failures),
        )
        return result.items

    @aws_operation("ecr.describe_repositories")
    async def get_repository(
        self, account_name: str, repository_name: str
    ) -> Optional[EcrRepository]:
        async with self._client(account_name) as client:
            try:
                response = await client.describe_repositories(
                    repositoryNames=[repository_name]
                )
            except ClientError as e:
                if repository_not_found(e):
                    return None
                raise
            repositories = response.get("repositories") or []
            if not repositories:
                return None
            result = await self.enricher.enrich(
                [map_repository(repositories[0])], [self._tag_enrichment(client)]
            )
        return result.items[0]

    @aws_operation("ecr.describe_images")
    async def list_images(
        self,
        account_name: str,
        repository_name: str,
        max_results: Optional[int] = None,
    ) -> List[EcrImage]:
        """
        Images of a repository, newest push first.

        With `max_results` the listing stops once that many images have been
        read, so the ordering applies to the images seen, not the whole
        repository.
        """
        async with self._client(account_name) as client:
            images = await collect_pages(
                aws_token_pages(
                    client.describe_images,
                    items_key="imageDetails",
                    request_token="nextToken",
                    transform=lambda image: map_image(repository_name, image),
                    repositoryName=repository_name,
                    maxResults=IMAGES_PAGE_SIZE,
                ),
                operation_name="ecr.describe_images",
                max_items=max_results,
            )
        return sorted(images, key=_pushed_at, reverse=True)

    @aws_operation("ecr.describe_image_scan_findings")
    async def get_image_scan_findings(
        self,
        account_name: str,
        repository_name: str,
        image_digest: str,
        image_tag: Optional[str] = None,
    ) -> Optional[EcrScanSummary]:
        image_id = {"imageDigest": image_digest}
        if image_tag:
            image_id["imageTag"] = image_tag
        async with self._client(account_name) as client:
            try:
                response = await client.describe_image_scan_findings(
                    repositoryName=repository_name, imageId=image_id
                )
            except ClientError as e:
                if scan_not_found(e):
                    return None
                raise
        findings = response.get("imageScanFindings")
        if not findings:
            return None
        tag = (response.get("imageId") or {}).get("imageTag")
        return map_scan_findings(image_digest, [tag] if tag else [], findings)

    @aws_operation("ecr.get_lifecycle_policy")
    async def get_lifecycle_policy(
        self, account_name: str, repository_name: str
    ) -> Optional[EcrLifecyclePolicy]:
        async with self._client(account_name) as client:
            try:
                response = await client.get_lifecycle_policy(
                    repositoryName=repository_name
                )
            except ClientError as e:
                if lifecycle_policy_not_found(e):
                    return None
                raise
        return EcrLifecyclePolicy(
            repository_name=response.get("repositoryName") or repository_name,
            registry_id=response.get("registryId", ""),
            policy_text=response.get("lifecyclePolicyText", ""),
            last_evaluated_at=response.get("lastEvaluatedAt"),
        )

    @aws_operation("ecr.get_repository_policy")
    async def get_repository_policy(
        self, account_name: str, repository_name: str
    ) -> Optional[EcrRepositoryPolicy]:
        async with self._client(account_name) as client:
            try:
                response = await client.get_repository_policy(
                    repositoryName=repository_name
                )
            except ClientError as e:
                if repository_policy_not_found(e):
                    return None
                raise
        return EcrRepositoryPolicy(
            repository_name=response.get("repositoryName") or repository_name,
            registry_id=response.get("registryId", ""),
            policy_text=response.get("policyText", ""),
        )
