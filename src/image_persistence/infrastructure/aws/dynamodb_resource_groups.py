"""DynamoDB-backed implementation of ResourceGroupRepository."""

from __future__ import annotations

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from image_persistence.filters.offset_pagination import OffsetPagination
from image_persistence.infrastructure.adapters.dynamodb_adapter import (
    DocumentStoreGateway,
    DynamoDBCollection,
)
from image_persistence.models.access_control import GroupPage
from image_persistence.models.errors import ConflictError, FilterError, PersistenceError
from image_persistence.models.pagination import PaginationInfo
from image_persistence.repositories.resource_group_repository import ResourceGroupRepository
from image_persistence.utils.constants import (
    ACCESS_CONTROL_TABLE_KEY,
    ACL_FIELD,
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    ENV_ACCESS_CONTROL_TABLE_NAME,
    ENV_RESOURCE_GROUP_TABLE_NAME,
    ERROR_CODE_GROUP_CASCADE_FAILED,
    ERROR_CODE_GROUP_CREATE_FAILED,
    ERROR_CODE_GROUP_DELETE_FAILED,
    ERROR_CODE_GROUP_FETCH_FAILED,
    ERROR_CODE_GROUP_UPDATE_FAILED,
    RESOURCE_GROUP_TABLE_KEY,
)
from image_persistence.utils.error_handling import aws_error_code, store_errors
from image_persistence.utils.normalize import to_plain

logger = Logger(UTC=True)


class DynamoDBResourceGroups(ResourceGroupRepository):
    """Resource groups, with rule cleanup in the access control table.

    Deleting a group is two independent steps: the group row is removed,
    then every rule naming the group is pulled from every key pair. A failure
    or crash between the two leaves rules that point at a group which no
    longer exists. Readers must treat such a rule as granting nothing.
    """

    def __init__(
        self,
        groups: DocumentStoreGateway | None = None,
        access_control: DocumentStoreGateway | None = None,
    ) -> None:
        self._groups: DocumentStoreGateway = groups or DynamoDBCollection(
            key_fields=RESOURCE_GROUP_TABLE_KEY,
            table_name_env=ENV_RESOURCE_GROUP_TABLE_NAME,
        )
        self._acl: DocumentStoreGateway = access_control or DynamoDBCollection(
            key_fields=ACCESS_CONTROL_TABLE_KEY,
            table_name_env=ENV_ACCESS_CONTROL_TABLE_NAME,
        )
        self._pagination = OffsetPagination()

    def create(self, name: str, resources: list[str] | None = None) -> bool:
        details = {"group_name": name}

        try:
            self._groups.insert_one({"name": name, "resources": list(resources or [])})

        except ClientError as exc:
            logger.error("DynamoDB put_item failed", extra=details)

            if aws_error_code(exc) == "ConditionalCheckFailedException":
                raise ConflictError(
                    message="Resource group already exists",
                    details=details,
                ) from exc

            raise PersistenceError(
                message="Unable to create resource group",
                error_code=ERROR_CODE_GROUP_CREATE_FAILED,
                details=details,
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error creating resource group")
            raise PersistenceError(
                message="Unable to create resource group",
                error_code=ERROR_CODE_GROUP_CREATE_FAILED,
                details=details,
            ) from exc

        logger.info("Resource group created", extra=details)
        return True

    def get(self, name: str) -> list[str] | None:
        with store_errors(
            message="Unable to fetch resource group",
            error_code=ERROR_CODE_GROUP_FETCH_FAILED,
            details={"group_name": name},
        ):
            document = self._groups.find_one({"name": name}, projection={"resources": True})

        if document is None:
            return None

        resources: list[str] = to_plain(document.get("resources") or [])
        return resources

    def exists(self, name: str) -> bool:
        return self.get(name) is not None

    def replace(self, name: str, resources: list[str]) -> bool:
        with store_errors(
            message="Unable to update resource group",
            error_code=ERROR_CODE_GROUP_UPDATE_FAILED,
            details={"group_name": name},
        ):
            result = self._groups.update_one(
                {"name": name},
                set_values={"resources": list(resources)},
            )

        return result.matched_count > 0

    def delete(self, name: str) -> bool:
        details = {"group_name": name}

        with store_errors(
            message="Unable to delete resource group",
            error_code=ERROR_CODE_GROUP_DELETE_FAILED,
            details=details,
        ):
            removed = self._groups.delete_one({"name": name})

        if not removed:
            return False

        logger.info("Resource group deleted", extra=details)

        with store_errors(
            message="Resource group deleted but its access rules could not be removed",
            error_code=ERROR_CODE_GROUP_CASCADE_FAILED,
            details=details,
        ):
            result = self._acl.update_many(
                {ACL_FIELD: {"$elemMatch": {"group": name}}},
                pull={ACL_FIELD: {"group": name}},
            )

        logger.info(
            "Access rules referring to group removed",
            extra={**details, "key_pairs": result.modified_count},
        )
        return True

    def list(self, page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> GroupPage:
        is_valid, error_message = self._pagination.validate(page, limit)
        if not is_valid:
            raise FilterError(message=error_message, details={"page": page, "limit": limit})

        with store_errors(
            message="Unable to list resource groups",
            error_code=ERROR_CODE_GROUP_FETCH_FAILED,
        ):
            documents = self._groups.find_many(
                sort=[("name", 1)],
                skip=self._pagination.skip_for_page(page, limit),
                limit=limit,
            )
            hits = self._groups.count()

        groups = {
            str(document["name"]): to_plain(document.get("resources") or [])
            for document in documents
        }

        return GroupPage(
            groups=groups,
            pagination=PaginationInfo(
                page=page,
                limit=limit,
                hits=hits,
                has_more=self._pagination.has_more(page, limit, hits),
            ),
        )
