"""Image operations across every node of a set.

Pull, push, build, load, save and create talk to registries or the
filesystem of each node, so their collaborator errors are re-raised as
``OperationFailedError`` naming the image; the captured ``Failure`` then
reads e.g. ``"Failed to pull image: connection refused"``.  ``tag`` and
``remove`` report ``False`` on nodes that do not have the image.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from dockfleet.core.errors import ResourceNotFoundError, ValidationError
from dockfleet.core.validation import require
from dockfleet.execution.outcome import Outcome
from dockfleet.operations.base import NodeOperations

IMAGE_NAME_PATTERN = re.compile(
    r"[a-z0-9]+((\.|_|-)?[a-z0-9]+)*(/[a-z0-9]+((\.|_|-)?[a-z0-9]+)*)*"
)
IMAGE_TAG_PATTERN = re.compile(r"[a-zA-Z0-9_.-]+")
IMAGE_REFERENCE_PATTERN = re.compile(
    r"[a-z0-9]+((\.|_|-)?[a-z0-9]+)*(/[a-z0-9]+((\.|_|-)?[a-z0-9]+)*)*(:[a-zA-Z0-9_.-]+)?"
)
PLATFORM_PATTERN = re.compile(r"[a-z0-9]+/[a-z0-9]+(/[a-z0-9]+)?")

PULL_POLICIES = ("always", "missing", "never")


@dataclass
class ImageBuildOptions:
    """Typed build options converted to the ``(parameters, config)`` pair
    that :meth:`ImageOperations.build` sends to each node.

    Example:
        >>> options = ImageBuildOptions(tag="web:1.2", context="./app", dockerfile="Dockerfile")
        >>> parameters, config = options.to_dicts()
        >>> parameters["t"], config["context"]
        ('web:1.2', './app')
    """

    tag: str | None = None
    context: str | None = None
    dockerfile: str | None = None
    dockerfile_content: str | None = None
    no_cache: bool = False
    quiet: bool = False
    rm: bool = True
    force_rm: bool = False
    build_args: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    target: str | None = None
    platform: str | None = None
    pull: str | None = None
    cache_from: list[str] = field(default_factory=list)

    def __post_init__(self):
        if self.tag is not None and not IMAGE_REFERENCE_PATTERN.fullmatch(self.tag):
            raise ValidationError.invalid(
                "tag", self.tag, "valid image reference: repository/name:tag",
                "Invalid image name/tag format",
            )
        if self.dockerfile is not None and self.dockerfile_content is not None:
            raise ValidationError.invalid(
                "dockerfile", self.dockerfile, "null if Dockerfile content is set",
                "Cannot set both Dockerfile path and content simultaneously",
            )
        if self.dockerfile_content is not None and not re.search(
            r"^(FROM|ARG\s+FROM)\s+.+", self.dockerfile_content, re.IGNORECASE | re.MULTILINE
        ):
            raise ValidationError.invalid(
                "dockerfile_content", "<content>", "Dockerfile content with FROM instruction",
                "Dockerfile must start with FROM or ARG FROM instruction",
            )
        if self.platform is not None and not PLATFORM_PATTERN.fullmatch(self.platform):
            raise ValidationError.invalid(
                "platform", self.platform, "platform in os/arch[/variant] format",
                "Invalid platform format",
            )
        if self.pull is not None and self.pull not in PULL_POLICIES:
            raise ValidationError.invalid(
                "pull", self.pull, ", ".join(PULL_POLICIES), "Invalid pull policy"
            )

    def to_dicts(self) -> tuple[dict[str, Any], dict[str, Any]]:
        """Return ``(parameters, config)``.

        Raises:
            ValidationError: If tag, context, or a Dockerfile source is missing.
        """
        missing = []
        if self.tag is None:
            missing.append("Image tag is required")
        if self.context is None:
            missing.append("Build context is required")
        if self.dockerfile is None and self.dockerfile_content is None:
            missing.append("Either Dockerfile path or content must be set")
        if missing:
            raise ValidationError(
                f"Invalid ImageBuildOptions: {'; '.join(missing)}",
                field="options",
                constraint="complete build options",
            )

        parameters: dict[str, Any] = {"t": self.tag, "rm": self.rm}
        if self.dockerfile is not None:
            parameters["dockerfile"] = self.dockerfile
        if self.no_cache:
            parameters["nocache"] = True
        if self.quiet:
            parameters["q"] = True
        if self.force_rm:
            parameters["forcerm"] = True
        if self.build_args:
            parameters["buildargs"] = json.dumps(self.build_args)
        if self.labels:
            parameters["labels"] = json.dumps(self.labels)
        if self.target is not None:
            parameters["target"] = self.target
        if self.platform is not None:
            parameters["platform"] = self.platform
        if self.pull is not None:
            parameters["pull"] = self.pull
        if self.cache_from:
            parameters["cachefrom"] = json.dumps(self.cache_from)

        config: dict[str, Any] = {"context": self.context}
        if self.dockerfile_content is not None:
            config["dockerfile_content"] = self.dockerfile_content

        return parameters, config


class ImageOperations(NodeOperations):
    """Fan-out facade for ``client.image()``."""

    resource_type = "image"

    def list(self, parameters: Mapping[str, Any] | None = None) -> dict[str, Outcome]:
        params = self._require_parameters(parameters)
        self._require_bools(params, "all")
        if "filters" in params and not isinstance(params["filters"], Mapping):
            raise ValidationError.invalid(
                "parameters.filters", params["filters"], "mapping",
                'Parameter "filters" must be a mapping',
            )
        return self._execute(lambda client: client.image().list(params))

    def build(
        self,
        parameters: Mapping[str, Any] | None = None,
        config: Mapping[str, Any] | None = None,
    ) -> dict[str, Outcome]:
        """Build an image on every node.

        ``parameters`` must name the image via ``t`` or ``tag``; a
        ``config["context"]`` must be a path string.
        """
        params = self._require_parameters(parameters)
        build_config = self._require_parameters(config, "config")
        if "t" not in params and "tag" not in params:
            raise ValidationError.required(
                "parameters.t or parameters.tag",
                "Tag parameter (t or tag) is required for building an image",
            )
        if "context" in build_config and not isinstance(build_config["context"], str):
            raise ValidationError.invalid(
                "config.context", build_config["context"], "string",
                "Context must be a string containing path to build context",
            )

        image_id = "unknown"
        for key in ("t", "tag"):
            if isinstance(params.get(key), str):
                image_id = params[key]
                break

        def operation(client):
            try:
                return client.image().build(params, build_config)
            except Exception as exc:
                self._wrap("build", image_id, "Failed to build image", exc)

        return self._execute(operation)

    def build_with_options(self, options: ImageBuildOptions) -> dict[str, Outcome]:
        """Build from an :class:`ImageBuildOptions` object."""
        if not isinstance(options, ImageBuildOptions):
            raise ValidationError.invalid("options", options, "ImageBuildOptions")
        parameters, config = options.to_dicts()
        return self.build(parameters, config)

    def create(self, from_image: str, tag: str | None = None) -> dict[str, Outcome]:
        """Create (pull) ``from_image[:tag]`` on every node."""
        self._require_id(from_image, "from_image", "Image name cannot be empty")
        if not IMAGE_NAME_PATTERN.fullmatch(from_image):
            raise ValidationError.invalid(
                "from_image", from_image, "valid image name", "Invalid image name format"
            )
        self._check_tag(tag)
        reference = f"{from_image}:{tag}" if tag else from_image

        def operation(client):
            try:
                return client.image().create(from_image, tag)
            except Exception as exc:
                self._wrap("create", reference, "Failed to pull image", exc)

        return self._execute(operation)

    def inspect(self, name: str) -> dict[str, Outcome]:
        self._check_name(name)

        def operation(client):
            try:
                return client.image().inspect(name)
            except ResourceNotFoundError:
                return self._not_found(f'Image "{name}" not found on this node')

        return self._execute(operation)

    def history(self, name: str) -> dict[str, Outcome]:
        self._check_name(name)

        def operation(client):
            try:
                return client.image().history(name)
            except ResourceNotFoundError:
                return self._not_found(f'Image "{name}" not found on this node')

        return self._execute(operation)

    def push(self, name: str, parameters: Mapping[str, Any] | None = None) -> dict[str, Outcome]:
        self._require_id(name, "name", "Image name cannot be empty")
        params = self._require_parameters(parameters)

        def operation(client):
            try:
                return client.image().push(name, params)
            except ResourceNotFoundError:
                return self._not_found(f'Image "{name}" not found on this node')
            except Exception as exc:
                self._wrap("push", name, "Failed to push image", exc)

        return self._execute(operation)

    def tag(self, name: str, repo: str, tag: str | None = None) -> dict[str, Outcome]:
        """Tag an image as ``repo[:tag]``; nodes without the image report ``False``."""
        self._check_name(name)
        self._require_id(repo, "repo", "Repository name cannot be empty")
        self._check_tag(tag)

        def operation(client):
            try:
                return client.image().tag(name, repo, tag)
            except ResourceNotFoundError:
                return False

        return self._execute(operation)

    def remove(self, name: str, force: bool = False, noprune: bool = False) -> dict[str, Outcome]:
        """Remove an image; nodes without the image report ``False``."""
        self._check_name(name)

        def operation(client):
            try:
                return client.image().remove(name, force, noprune)
            except ResourceNotFoundError:
                return False

        return self._execute(operation)

    def search(self, term: str) -> dict[str, Outcome]:
        self._require_id(term, "term", "Search term cannot be empty")
        return self._execute(lambda client: client.image().search(term))

    def prune(self, parameters: Mapping[str, Any] | None = None) -> dict[str, Outcome]:
        params = self._require_parameters(parameters)
        return self._execute(lambda client: client.image().prune(params))

    def exists(self, name: str) -> dict[str, Outcome]:
        self._check_name(name)
        return self._execute(lambda client: client.image().exists(name))

    def exists_on_all_nodes(self, name: str) -> bool:
        self._check_name(name)
        return self._all_true(self.exists(name))

    def get_nodes_with_image(self, name: str) -> list[str]:
        self._check_name(name)
        return self._names_with_true(self.exists(name))

    def pull(self, name: str, parameters: Mapping[str, Any] | None = None) -> dict[str, Outcome]:
        self._require_id(name, "name", "Image name cannot be empty")
        params = self._require_parameters(parameters)

        def operation(client):
            try:
                return client.image().pull(name, params)
            except ResourceNotFoundError:
                return self._not_found(f'Image "{name}" not found on this node')
            except Exception as exc:
                self._wrap("pull", name, "Failed to pull image", exc)

        return self._execute(operation)

    def load(self, image_archive: str) -> dict[str, Outcome]:
        self._require_id(image_archive, "image_archive", "Image archive path cannot be empty")

        def operation(client):
            try:
                return client.image().load(image_archive)
            except Exception as exc:
                self._wrap("load", image_archive, "Failed to load image", exc)

        return self._execute(operation)

    def save(self, names: str | list[str], output_file: str) -> dict[str, Outcome]:
        """Save one image (or several) to ``output_file`` on every node."""
        require(names, "names", "Image name or ID cannot be empty")
        self._require_id(output_file, "output_file", "Output file path cannot be empty")
        resource_id = names if isinstance(names, str) else ",".join(names)

        def operation(client):
            try:
                return client.image().save(names, output_file)
            except Exception as exc:
                self._wrap("save", resource_id, "Failed to save image", exc)

        return self._execute(operation)

    # ── Checks ───────────────────────────────────────────────────────

    def _check_name(self, name: Any) -> None:
        self._require_id(name, "name", "Image name or ID cannot be empty")

    @staticmethod
    def _check_tag(tag: Any) -> None:
        if tag is None or tag == "":
            return
        if not isinstance(tag, str) or not IMAGE_TAG_PATTERN.fullmatch(tag):
            raise ValidationError.invalid(
                "tag", tag, "valid tag (letters, digits, _, ., -)", "Invalid tag format"
            )


__all__ = ["ImageOperations", "ImageBuildOptions"]
