"""DynamoDB-backed implementation of AccessControlRepository."""

from collections.abc import Mapping
from typing import Any
import uuid

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError
from pydantic import ValidationError

from image_persistence.infrastructure.adapters.dynamodb_adapter import (
    DocumentStoreGateway,
    DynamoDBCollection,
)
from image_persistence.models.access_control import AccessRule
from image_persistence.models.errors import ConflictError, FilterError, PersistenceError
from image_persistence.repositories.access_control_repository import (
    AccessControlRepository,
    Rule,
)
from image_persistence.utils.constants import (
    ACCESS_CONTROL_TABLE_KEY,
    ACL_FIELD,
    ENV_ACCESS_CONTROL_TABLE_NAME,
    ERROR_CODE_INVALID_ACCESS_RULE,
    ERROR_CODE_KEY_CREATE_FAILED,
    ERROR_CODE_KEY_DELETE_FAILED,
    ERROR_CODE_KEY_FETCH_FAILED,
    ERROR_CODE_KEY_UPDATE_FAILED,
    ERROR_CODE_RULE_ADD_FAILED,
    ERROR_CODE_RULE_DELETE_FAILED,
)
from image_persistence.utils.error_handling import aws_error_code, store_errors
from image_persistence.utils.normalize import to_plain

logger = Logger(UTC=True)


class DynamoDBAccessControl(AccessControlRepository):
    """Key pair records with an embedded, ordered ``acl`` rule list.

    Every rule mutation rewrites the parent record in a single update, so a
    rule is never visible half-written.
    """

    def __init__(self, collection: DocumentStoreGateway | None = None) -> None:
        self._db: DocumentStoreGateway = collection or DynamoDBCollection(
            key_fields=ACCESS_CONTROL_TABLE_KEY,
            table_name_env=ENV_ACCESS_CONTROL_TABLE_NAME,
        )

    def get_private_key(self, public_key: str) -> str | None:
        document = self._find_key(public_key, fields=("private_key",))

        if document is None or document.get("private_key") is None:
            return None

        return str(document["private_key"])

    def create_key_pair(self, public_key: str, private_key: str) -> bool:
        details = {"public_key": public_key}

        try:
            self._db.insert_one(
                {"public_key": public_key, "private_key": private_key, ACL_FIELD: []}
            )

        except ClientError as exc:
            logger.error("DynamoDB put_item failed", extra=details)

            if aws_error_code(exc) == "ConditionalCheckFailedException":
                raise ConflictError(
                    message="Public key already exists",
                    details=details,
                ) from exc

            raise PersistenceError(
                message="Unable to create key pair",
                error_code=ERROR_CODE_KEY_CREATE_FAILED,
                details=details,
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error creating key pair")
            raise PersistenceError(
                message="Unable to create key pair",
                error_code=ERROR_CODE_KEY_CREATE_FAILED,
                details=details,
            ) from exc

        logger.info("Key pair created", extra=details)
        return True

    def delete_public_key(self, public_key: str) -> bool:
        with store_errors(
            message="Unable to delete public key",
            error_code=ERROR_CODE_KEY_DELETE_FAILED,
            details={"public_key": public_key},
        ):
            removed = self._db.delete_one({"public_key": public_key})

        return removed > 0

    def update_private_key(self, public_key: str, private_key: str) -> bool:
        with store_errors(
            message="Unable to update private key",
            error_code=ERROR_CODE_KEY_UPDATE_FAILED,
            details={"public_key": public_key},
        ):
            result = self._db.update_one(
                {"public_key": public_key},
                set_values={"private_key": private_key},
            )

        return result.matched_count > 0

    def add_rule(self, public_key: str, rule: AccessRule | Mapping[str, Any]) -> str:
        """Append a rule to the key's list and return the id assigned to it.

        A caller-supplied ``id`` is discarded.

        Raises:
            FilterError: If the rule payload is malformed
            PersistenceError: If the write fails
        """
        try:
            model = rule if isinstance(rule, AccessRule) else AccessRule.model_validate(dict(rule))
        except ValidationError as exc:
            logger.warning("Rejected malformed access rule", extra={"public_key": public_key})
            raise FilterError(
                message="Access rule is malformed",
                error_code=ERROR_CODE_INVALID_ACCESS_RULE,
                details={"public_key": public_key, "errors": exc.errors(include_url=False)},
            ) from exc
        rule_id = uuid.uuid4().hex

        with store_errors(
            message="Unable to add access rule",
            error_code=ERROR_CODE_RULE_ADD_FAILED,
            details={"public_key": public_key},
        ):
            self._db.update_one(
                {"public_key": public_key},
                push={ACL_FIELD: model.to_document(rule_id)},
            )

        logger.info("Access rule added", extra={"public_key": public_key, "rule_id": rule_id})
        return rule_id

    def get_rule(self, public_key: str, rule_id: str) -> Rule | None:
        for rule in self.list_rules(public_key):
            if rule.get("id") == rule_id:
                return rule

        return None

    def delete_rule(self, public_key: str, rule_id: str) -> bool:
        with store_errors(
            message="Unable to delete access rule",
            error_code=ERROR_CODE_RULE_DELETE_FAILED,
            details={"public_key": public_key, "rule_id": rule_id},
        ):
            result = self._db.update_one(
                {"public_key": public_key},
                pull={ACL_FIELD: {"id": rule_id}},
            )

        return result.modified_count > 0

    def list_rules(self, public_key: str) -> list[Rule]:
        document = self._find_key(public_key, fields=(ACL_FIELD,))

        if document is None:
            return []

        rules: list[Rule] = []
        for rule in to_plain(document.get(ACL_FIELD) or []):
            rule["id"] = str(rule.get("id", ""))
            rules.append(rule)

        return rules

    def key_exists(self, public_key: str) -> bool:
        return self._find_key(public_key, fields=("public_key",)) is not None

    def _find_key(self, public_key: str, fields: tuple[str, ...]) -> dict[str, Any] | None:
        with store_errors(
            message="Unable to fetch key pair",
            error_code=ERROR_CODE_KEY_FETCH_FAILED,
            details={"public_key": public_key},
        ):
            return self._db.find_one(
                {"public_key": public_key},
                projection=dict.fromkeys(fields, True),
            )
