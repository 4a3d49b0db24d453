"""API Gateway HTTP API adapter (ResourceKind.API_ROUTING)."""

from __future__ import annotations

import re
from typing import Any

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from filestack.adapters._aws import account_from_arn, aws_client, error_code
from filestack.core.exceptions import AdapterError
from filestack.models.deployment import ResourceKind

logger = structlog.get_logger()

KIND = ResourceKind.API_ROUTING

DEFAULT_STAGE = "$default"


class HttpApiRoutingAdapter:
    """Find-or-create an HTTP API and upsert one Lambda proxy route per endpoint."""

    def __init__(self, name: str, identity: dict[str, Any] | None = None, *,
                 region: str = "us-east-1", endpoint_url: str | None = None) -> None:
        self._resource = name
        self._identity = dict(identity or {})
        self._region = self._identity.get("region", region)
        self._api = aws_client("apigatewayv2", self._region, endpoint_url)
        self._lambda = aws_client("lambda", self._region, endpoint_url)

    def identity(self) -> dict[str, Any]:
        return dict(self._identity)

    def apply(self, spec: dict[str, Any]) -> dict[str, Any]:
        api_name = spec["name"]
        endpoints = spec.get("endpoints", [])
        try:
            api = self._find_api(api_name) or self._api.create_api(
                Name=api_name, ProtocolType="HTTP", Description=spec.get("description", ""),
            )
            api_id = api["ApiId"]
            self._sync_routes(api_id, endpoints)
            self._ensure_stage(api_id)
        except (ClientError, BotoCoreError) as exc:
            raise AdapterError(KIND, f"applying API {api_name!r} failed: {exc}") from exc

        logger.info("api_applied", resource=self._resource, api_id=api_id, routes=len(endpoints))
        self._identity = {"api_id": api_id, "name": api_name, "region": self._region}
        return {
            "api_id": api_id,
            "name": api_name,
            "url": api.get("ApiEndpoint", ""),
            "region": self._region,
        }

    def remove(self) -> None:
        api_id = self._identity.get("api_id")
        if not api_id:
            return
        try:
            self._api.delete_api(ApiId=api_id)
        except ClientError as exc:
            if error_code(exc) == "NotFoundException":
                return
            raise AdapterError(KIND, f"deleting API {api_id!r} failed: {exc}") from exc
        except BotoCoreError as exc:
            raise AdapterError(KIND, f"deleting API {api_id!r} failed: {exc}") from exc
        logger.info("api_deleted", resource=self._resource, api_id=api_id)

    def _find_api(self, api_name: str) -> dict[str, Any] | None:
        api_id = self._identity.get("api_id")
        if api_id:
            try:
                return self._api.get_api(ApiId=api_id)
            except ClientError as exc:
                if error_code(exc) != "NotFoundException":
                    raise
        for item in self._api.get_apis().get("Items", []):
            if item.get("Name") == api_name:
                return item
        return None

    def _sync_routes(self, api_id: str, endpoints: list[dict[str, Any]]) -> None:
        routes = {r["RouteKey"]: r for r in self._api.get_routes(ApiId=api_id).get("Items", [])}
        integrations = {
            i.get("IntegrationUri"): i["IntegrationId"]
            for i in self._api.get_integrations(ApiId=api_id).get("Items", [])
        }

        wanted: set[str] = set()
        for endpoint in endpoints:
            function_arn = endpoint["function"]
            route_key = f"{endpoint.get('method', 'ANY').upper()} {endpoint['path']}"
            wanted.add(route_key)

            integration_id = integrations.get(function_arn)
            if integration_id is None:
                integration_id = self._api.create_integration(
                    ApiId=api_id,
                    IntegrationType="AWS_PROXY",
                    IntegrationUri=function_arn,
                    PayloadFormatVersion="2.0",
                )["IntegrationId"]
                integrations[function_arn] = integration_id

            target = f"integrations/{integration_id}"
            existing = routes.get(route_key)
            if existing is None:
                self._api.create_route(ApiId=api_id, RouteKey=route_key, Target=target)
            elif existing.get("Target") != target:
                self._api.update_route(ApiId=api_id, RouteId=existing["RouteId"], Target=target)

            self._grant_invoke(api_id, route_key, function_arn)

        for route_key, route in routes.items():
            if route_key not in wanted:
                self._api.delete_route(ApiId=api_id, RouteId=route["RouteId"])

    def _ensure_stage(self, api_id: str) -> None:
        stages = self._api.get_stages(ApiId=api_id).get("Items", [])
        if not any(s.get("StageName") == DEFAULT_STAGE for s in stages):
            self._api.create_stage(ApiId=api_id, StageName=DEFAULT_STAGE, AutoDeploy=True)

    def _grant_invoke(self, api_id: str, route_key: str, function_arn: str) -> None:
        statement_id = re.sub(r"[^A-Za-z0-9_-]", "-", f"{api_id}-{route_key}")[:100]
        source_arn = f"arn:aws:execute-api:{self._region}:{account_from_arn(function_arn)}:{api_id}/*/*"
        try:
            self._lambda.add_permission(
                FunctionName=function_arn,
                StatementId=statement_id,
                Action="lambda:InvokeFunction",
                Principal="apigateway.amazonaws.com",
                SourceArn=source_arn,
            )
        except ClientError as exc:
            if error_code(exc) != "ResourceConflictException":
                raise
