"""Scene container coordinating cameras, lights, materials and nodes.

The Scene keeps four insertion-ordered registries keyed by name. Adding an
object under an existing name replaces it (last write wins) while keeping
its place in iteration order. Once construction is finished, freeze()
makes the whole graph read-only so it can be shared by concurrent readers.

The Scene maintains:
- Named cameras, lights, materials and root nodes
- One IntersectionConfig passed to every node and shape query
- Scene serialization/configuration support

Example:
    >>> from raykernel.core.ray import Ray
    >>> from raykernel.geometry import Sphere
    >>> from raykernel.materials import red
    >>> from raykernel.scene.manager import Scene
    >>> from raykernel.scene.node import Node
    >>> scene = Scene()
    >>> shiny = scene.add_material("red", red())
    >>> ball = scene.add_node("ball", Node(Sphere(), shiny).translate(0.0, 0.0, -3.0))
    >>> hit = scene.intersect(Ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)))
    >>> hit.material is shiny
    True
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from raykernel.camera.pinhole import Camera
from raykernel.core.config import IntersectionConfig, resolve_config
from raykernel.core.ray import Ray
from raykernel.core.transform import Transform
from raykernel.core.vector import Vector3, as_vec3
from raykernel.errors import ConstructionError
from raykernel.geometry.base import shape_from_dict
from raykernel.geometry.bounds import AABB
from raykernel.materials.material import Material
from raykernel.scene.intersection import SceneHitRecord, closest_hit
from raykernel.scene.light import AmbientLight, AnyLight, PointLight, light_from_dict
from raykernel.scene.node import Node
from raykernel.scene.registry import Registry

logger = logging.getLogger(__name__)


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Each entry is a dictionary with a "name" key plus the object's own
    fields. Node entries reference materials by registered name where
    possible and carry their transform as a 4x4 matrix.

    Attributes:
        cameras: List of camera configurations.
        lights: List of light configurations.
        materials: List of material configurations.
        nodes: List of root node configurations (children nested).
    """

    cameras: list[dict[str, Any]] = field(default_factory=list)
    lights: list[dict[str, Any]] = field(default_factory=list)
    materials: list[dict[str, Any]] = field(default_factory=list)
    nodes: list[dict[str, Any]] = field(default_factory=list)


def _split_name(entry: dict[str, Any], kind: str) -> tuple[str, dict[str, Any]]:
    """Separate the "name" key of a config entry from the object's fields."""
    fields = dict(entry)
    name = fields.pop("name", None)
    if not name:
        raise ConstructionError(f"{kind.capitalize()} entries need a 'name'")
    return name, fields


class Scene:
    """The scene graph handed to the renderer.

    Attributes:
        config: Intersection tolerances used by intersect() and occluded().

    Example:
        >>> scene = Scene()
        >>> main = scene.add_camera("main", Camera(eye=(0, 0, 5), look_at=(0, 0, 0)))
        >>> key = scene.add_light("key", PointLight.white((5, 5, 5)))
        >>> fill = scene.add_light("fill", AmbientLight((0.1, 0.1, 0.1)))
    """

    def __init__(self, config: IntersectionConfig | None = None) -> None:
        """Initialize an empty scene."""
        self.config = resolve_config(config)
        self._cameras: Registry[Camera] = Registry("camera")
        self._lights: Registry[AnyLight] = Registry("light")
        self._materials: Registry[Material] = Registry("material")
        self._nodes: Registry[Node] = Registry("node")
        self._frozen = False

    def __repr__(self) -> str:
        return (
            f"Scene(cameras={len(self._cameras)}, lights={len(self._lights)}, "
            f"materials={len(self._materials)}, nodes={len(self._nodes)})"
        )

    def clear(self) -> None:
        """Remove every registered object."""
        if self._frozen:
            raise ConstructionError("Cannot clear a frozen scene")
        self._cameras = Registry("camera")
        self._lights = Registry("light")
        self._materials = Registry("material")
        self._nodes = Registry("node")

    # =========================================================================
    # Registration
    # =========================================================================

    def add_camera(self, name: str, camera: Camera) -> Camera:
        """Register or replace a camera.

        Returns:
            The camera.

        Raises:
            ConstructionError: If camera is not a Camera or the scene is frozen.
        """
        if not isinstance(camera, Camera):
            raise ConstructionError(f"Expected a Camera, got {type(camera).__name__}")
        return self._cameras.add(name, camera)

    def add_light(self, name: str, light: AnyLight) -> AnyLight:
        """Register or replace a point or ambient light."""
        if not isinstance(light, (PointLight, AmbientLight)):
            raise ConstructionError(f"Expected a light, got {type(light).__name__}")
        return self._lights.add(name, light)

    def add_material(self, name: str, material: Material) -> Material:
        """Register or replace a material."""
        if not isinstance(material, Material):
            raise ConstructionError(f"Expected a Material, got {type(material).__name__}")
        return self._materials.add(name, material)

    def add_node(self, name: str, node: Node) -> Node:
        """Register or replace a root node.

        Raises:
            ConstructionError: If node is not a Node or is already the child
                of another node.
        """
        if not isinstance(node, Node):
            raise ConstructionError(f"Expected a Node, got {type(node).__name__}")
        if node.parent is not None:
            raise ConstructionError(f"{node!r} is a child node and cannot be a scene root")
        if node.name is None and not node.is_frozen:
            node.name = name
        return self._nodes.add(name, node)

    # =========================================================================
    # Lookup
    # =========================================================================

    def cameras(self) -> Mapping[str, Camera]:
        """Read-only, insertion-ordered view of the cameras."""
        return self._cameras.view()

    def lights(self) -> Mapping[str, AnyLight]:
        """Read-only, insertion-ordered view of the lights."""
        return self._lights.view()

    def materials(self) -> Mapping[str, Material]:
        """Read-only, insertion-ordered view of the materials."""
        return self._materials.view()

    def nodes(self) -> Mapping[str, Node]:
        """Read-only, insertion-ordered view of the root nodes."""
        return self._nodes.view()

    def get_camera(self, name: str) -> Camera | None:
        """Return the named camera, or None if it is not registered."""
        return self._cameras.get(name)

    def get_light(self, name: str) -> AnyLight | None:
        """Return the named light, or None if it is not registered."""
        return self._lights.get(name)

    def get_material(self, name: str) -> Material | None:
        """Return the named material, or None if it is not registered."""
        return self._materials.get(name)

    def get_node(self, name: str) -> Node | None:
        """Return the named root node, or None if it is not registered."""
        return self._nodes.get(name)

    def default_camera(self) -> Camera | None:
        """Return the first registered camera, or None."""
        return self._cameras.first()

    def active_lights(self) -> list[PointLight]:
        """Return the active point lights in registration order."""
        return [
            light
            for light in self._lights.values()
            if isinstance(light, PointLight) and light.is_active
        ]

    def ambient_color(self) -> Vector3:
        """Sum of the colours of all active ambient lights."""
        total = [0.0, 0.0, 0.0]
        for light in self._lights.values():
            if isinstance(light, AmbientLight) and light.is_active:
                total = [a + b for a, b in zip(total, light.color)]
        return as_vec3(total, name="ambient")

    # =========================================================================
    # Ray queries
    # =========================================================================

    def intersect(self, ray: Ray) -> SceneHitRecord | None:
        """Return the nearest hit over all active root nodes, or None."""
        return closest_hit(node.intersect(ray, self.config) for node in self._nodes.values())

    def occluded(self, ray: Ray, t_max: float) -> bool:
        """Shadow query: is anything hit with epsilon < t < t_max?

        Args:
            ray: Ray from the shaded point toward the light.
            t_max: Ray parameter of the light (e.g. 1.0 for an unnormalized
                direction spanning exactly to the light).
        """
        limit = min(t_max, self.config.t_max)
        if limit <= self.config.epsilon:
            return False
        config = self.config.with_overrides(t_max=limit)
        return any(node.intersect(ray, config) is not None for node in self._nodes.values())

    def bounds(self) -> AABB | None:
        """World bounding box of all active nodes, or None if there are none."""
        box = None
        for node in self._nodes.values():
            node_box = node.world_bounds()
            if node_box is not None:
                box = node_box if box is None else box.union(node_box)
        return box

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def freeze(self) -> "Scene":
        """Make the scene and every node read-only; returns self."""
        for registry in (self._cameras, self._lights, self._materials, self._nodes):
            registry.freeze()
        for node in self._nodes.values():
            node.freeze()
        self._frozen = True
        logger.debug("Scene frozen: %r", self)
        return self

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object.

        Returns:
            A SceneConfig containing every registered object.
        """
        config = SceneConfig()
        for name, camera in self._cameras.items():
            config.cameras.append({"name": name, **camera.to_dict()})
        for name, light in self._lights.items():
            config.lights.append({"name": name, **light.to_dict()})
        for name, material in self._materials.items():
            config.materials.append({"name": name, **material.to_dict()})
        for name, node in self._nodes.items():
            config.nodes.append({"key": name, **node.to_dict(self._materials.name_of)})
        return config

    def _node_from_dict(self, data: dict[str, Any]) -> Node:
        ref = data.get("material")
        if ref is None:
            material = None
        elif isinstance(ref, str):
            # Unknown names raise LookupMiss
            material = self._materials[ref]
        else:
            material = Material.from_dict(ref)

        if "shape" not in data:
            raise ConstructionError(f"Node entry {data.get('name')!r} has no shape")
        node = Node(shape_from_dict(data["shape"]), material, name=data.get("name"))
        if "transform" in data:
            node.transform = Transform.from_matrix(data["transform"])
        node.active(data.get("active", True))
        for child in data.get("children", []):
            node.add_child(self._node_from_dict(child))
        return node

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        The configuration is loaded into a fresh scene first; the current
        contents are only replaced once every entry has loaded, so a failed
        load leaves this scene unchanged.

        Args:
            config: The scene configuration to load.

        Raises:
            ConstructionError: If the configuration contains invalid data.
            LookupMiss: If a node references an unregistered material name.
        """
        if self._frozen:
            raise ConstructionError("Cannot load into a frozen scene")

        staged = Scene(self.config)
        staged._load(config)
        self._cameras = staged._cameras
        self._lights = staged._lights
        self._materials = staged._materials
        self._nodes = staged._nodes
        logger.debug("Loaded scene configuration: %r", self)

    def _load(self, config: SceneConfig) -> None:
        # Load materials first (needed by nodes)
        for entry in config.materials:
            name, fields = _split_name(entry, "material")
            self.add_material(name, Material.from_dict(fields))

        for entry in config.cameras:
            name, fields = _split_name(entry, "camera")
            self.add_camera(name, Camera.from_dict(fields))

        for entry in config.lights:
            name, fields = _split_name(entry, "light")
            self.add_light(name, light_from_dict(fields))

        for entry in config.nodes:
            name = entry.get("key") or entry.get("name")
            if not name:
                raise ConstructionError("Root node entries need a 'key' or 'name'")
            self.add_node(name, self._node_from_dict(entry))

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization).

        Returns:
            A dictionary representation of the scene.
        """
        config = self.to_config()
        return {
            "cameras": config.cameras,
            "lights": config.lights,
            "materials": config.materials,
            "nodes": config.nodes,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with 'cameras', 'lights', 'materials' and
                'nodes' keys.
        """
        config = SceneConfig(
            cameras=data.get("cameras", []),
            lights=data.get("lights", []),
            materials=data.get("materials", []),
            nodes=data.get("nodes", []),
        )
        self.from_config(config)
