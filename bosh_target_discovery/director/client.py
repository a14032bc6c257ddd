"""REST client for the BOSH director API."""

from __future__ import annotations

import json
import logging
import time
from typing import Any
from urllib.parse import quote

import requests

from ..config import BoshConfig
from ..exceptions import DirectorAPIError
from .models import DeploymentInfo, Instance

logger = logging.getLogger(__name__)

_TASK_FINISHED_STATES = ("done", "error", "cancelled", "timeout")


class BoshDirectorClient:
    """Thin wrapper around the BOSH director REST API."""

    def __init__(self, config: BoshConfig):
        self._base = config.url.rstrip("/")
        self._session = requests.Session()
        if config.username:
            self._session.auth = (config.username, config.password)
        self._session.headers["Accept"] = "application/json"
        self._session.verify = config.ca_cert if config.ca_cert and config.verify_ssl else config.verify_ssl
        self._timeout = config.timeout
        self._task_poll_interval = config.task_poll_interval_seconds
        self._task_timeout = config.task_timeout_seconds

    # ── Director identity ───────────────────────────────────────────

    def info(self) -> dict[str, Any]:
        """Return the director's /info document (name, uuid, version, ...)."""
        info = self._json(self._get("/info"))
        if not isinstance(info, dict):
            raise DirectorAPIError("Unexpected /info document from director", response_body=str(info))
        return info

    # ── Tasks ───────────────────────────────────────────────────────

    def current_tasks(self, states: list[str]) -> list[dict[str, Any]]:
        """Return tasks across all deployments that are in any of the given states."""
        resp = self._get("/tasks", params={"state": ",".join(states), "verbose": 2})
        tasks = self._json(resp)
        if not isinstance(tasks, list):
            raise DirectorAPIError("Unexpected task list from director", response_body=resp.text)
        return tasks

    # ── Deployments ─────────────────────────────────────────────────

    def deployments(self) -> list[DeploymentInfo]:
        resp = self._get("/deployments")
        try:
            names = [d["name"] for d in self._json(resp)]
        except (KeyError, TypeError) as exc:
            raise DirectorAPIError(f"Unexpected deployment list from director: {exc}", response_body=resp.text) from exc
        logger.debug("Director reports %d deployments", len(names))
        return [self.find_deployment(name) for name in names]

    def find_deployment(self, name: str) -> DeploymentInfo:
        """Return the named deployment with its full instance inventory."""
        path = f"/deployments/{quote(name, safe='')}"
        self._get(path)  # 404 when the deployment does not exist

        resp = self._get(f"{path}/instances", params={"format": "full"}, allow_redirects=False)
        task_id = self._task_id_from_redirect(resp)
        self._wait_for_task(task_id)

        output = self._get(f"/tasks/{task_id}/output", params={"type": "result"})
        try:
            instances = [
                Instance.from_director(json.loads(line))
                for line in output.text.splitlines()
                if line.strip()
            ]
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise DirectorAPIError(f"Could not decode instances of task {task_id}: {exc}") from exc
        return DeploymentInfo(name=name, instances=instances)

    # ── Task helpers ────────────────────────────────────────────────

    @staticmethod
    def _task_id_from_redirect(resp: requests.Response) -> str:
        location = resp.headers.get("Location", "")
        if resp.status_code not in (301, 302, 303) or "/tasks/" not in location:
            raise DirectorAPIError(
                f"Expected a task redirect, got HTTP {resp.status_code}",
                status_code=resp.status_code,
                response_body=resp.text,
            )
        return location.rstrip("/").rsplit("/", 1)[-1]

    def _wait_for_task(self, task_id: str) -> None:
        deadline = time.monotonic() + self._task_timeout
        while True:
            task = self._json(self._get(f"/tasks/{task_id}"))
            if not isinstance(task, dict):
                raise DirectorAPIError(f"Unexpected task document for task {task_id}", response_body=str(task))
            state = task.get("state", "")
            if state == "done":
                return
            if state in _TASK_FINISHED_STATES:
                raise DirectorAPIError(f"Task {task_id} finished in state '{state}': {task.get('result', '')}")
            if time.monotonic() >= deadline:
                raise DirectorAPIError(f"Timed out after {self._task_timeout}s waiting for task {task_id}")
            logger.debug("Task %s is %s, waiting", task_id, state)
            time.sleep(self._task_poll_interval)

    # ── Internal HTTP helpers ───────────────────────────────────────

    @staticmethod
    def _json(resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise DirectorAPIError(
                f"Invalid JSON from director on {resp.request.method} {resp.url}: {exc}",
                status_code=resp.status_code,
                response_body=resp.text,
            ) from exc

    def _get(self, path: str, params: dict | None = None, allow_redirects: bool = True) -> requests.Response:
        return self._request("GET", path, params=params, allow_redirects=allow_redirects)

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self._base}{path}"
        kwargs.setdefault("timeout", self._timeout)
        logger.debug("%s %s params=%s", method, path, kwargs.get("params"))

        try:
            resp = self._session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            raise DirectorAPIError(f"Request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise DirectorAPIError(
                f"HTTP {resp.status_code} on {method} {path}: {resp.text}",
                status_code=resp.status_code,
                response_body=resp.text,
            )

        return resp
