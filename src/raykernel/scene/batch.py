"""Batch ray-scene intersection with Taichi.

The flattened scene (see raykernel.scene.flatten) is uploaded into
module-level Taichi fields with fixed capacities, and one kernel
intersects a whole array of rays against every instance. Each ray is
mapped into the instance's local frame without renormalising its
direction, so local distances equal world distances and the closest hit
can be tracked across instances directly.

Analytic primitives (sphere, box, rectangle, disk, cylinder, cone and
triangles) are solved in closed form. Implicit surfaces (torus, Roman,
Steiner2, cross-cap) are sampled uniformly inside their bounding sphere
and the first sign change is refined by bisection. Tangential touches
without a sign change are not reported; use Scene.intersect() when those
matter.

Fields are allocated when this module is imported, so Taichi must be
initialised first, and only one scene is resident at a time.

Example:
    >>> import numpy as np
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raykernel.scene.batch import BatchTracer
    >>> tracer = BatchTracer(scene)
    >>> hits = tracer.intersect(np.zeros((1, 3)), np.array([[0.0, 0.0, -1.0]]))
    >>> hits.hit
    array([ True])
"""

import logging
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from raykernel.core.config import BOUNDING_MARGIN, IntersectionConfig, resolve_config
from raykernel.scene.flatten import NUM_PARAMS, FlatScene, PrimitiveType, flatten_scene
from raykernel.scene.manager import Scene

logger = logging.getLogger(__name__)

# Type aliases for Taichi vectors and matrices
vec3 = tm.vec3
mat4 = tm.mat4
vec_params = ti.types.vector(NUM_PARAMS, ti.f32)

# Maximum scene size supported by the fields
MAX_INSTANCES = 1024
MAX_TRIANGLES = 65536

# Uniform samples along the clipped ray for implicit surfaces
IMPLICIT_SAMPLES = 128
BISECTION_STEPS = 40

# Primitive codes as plain ints for use inside kernels
_SPHERE = int(PrimitiveType.SPHERE)
_BOX = int(PrimitiveType.BOX)
_RECTANGLE = int(PrimitiveType.RECTANGLE)
_DISK = int(PrimitiveType.DISK)
_CYLINDER = int(PrimitiveType.CYLINDER)
_CONE = int(PrimitiveType.CONE)
_TORUS = int(PrimitiveType.TORUS)
_MESH = int(PrimitiveType.MESH)
_ROMAN = int(PrimitiveType.ROMAN)
_STEINER2 = int(PrimitiveType.STEINER2)
_CROSS_CAP2 = int(PrimitiveType.CROSS_CAP2)

# Instance storage: Structure of Arrays layout
inst_inverse = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_INSTANCES)
inst_normal_matrix = ti.Matrix.field(3, 3, dtype=ti.f32, shape=MAX_INSTANCES)
inst_type = ti.field(dtype=ti.i32, shape=MAX_INSTANCES)
inst_params = ti.Vector.field(NUM_PARAMS, dtype=ti.f32, shape=MAX_INSTANCES)
inst_tri_start = ti.field(dtype=ti.i32, shape=MAX_INSTANCES)
inst_tri_count = ti.field(dtype=ti.i32, shape=MAX_INSTANCES)
num_instances = ti.field(dtype=ti.i32, shape=())

# Shared triangle table in local mesh coordinates
tri_v0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
tri_v1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
tri_v2 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)

# Tracer whose scene currently occupies the fields
_resident: "BatchTracer | None" = None


@ti.dataclass
class LocalHit:
    """Closest hit found so far in an instance's local frame.

    Attributes:
        hit: 1 if a hit was recorded, 0 otherwise.
        t: Ray parameter of the hit, or the current upper bound on a miss.
        normal: Unnormalised local normal. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    normal: vec3


# =============================================================================
# Helpers
# =============================================================================


@ti.func
def _miss(t_max: ti.f32) -> LocalHit:
    return LocalHit(hit=0, t=t_max, normal=vec3(0.0, 0.0, 0.0))


@ti.func
def _consider(best: LocalHit, t: ti.f32, normal: vec3, t_min: ti.f32) -> LocalHit:
    """Replace best when t lies in (t_min, best.t)."""
    result = best
    if t > t_min and t < best.t:
        result = LocalHit(hit=1, t=t, normal=normal)
    return result


@ti.func
def _solve_quadratic(a: ti.f32, b: ti.f32, c: ti.f32):
    """Real roots of a*t^2 + b*t + c = 0 as (count, t0, t1) with t0 <= t1.

    Uses q = -(b + sign(b) * sqrt(disc)) / 2 to avoid cancellation.
    """
    n = 0
    t0 = 0.0
    t1 = 0.0
    if ti.abs(a) < 1e-12:
        if ti.abs(b) > 1e-12:
            n = 1
            t0 = -c / b
            t1 = t0
    else:
        disc = b * b - 4.0 * a * c
        if disc >= 0.0:
            sqrt_d = ti.sqrt(disc)
            q = -0.5 * (b + ti.select(b < 0.0, -sqrt_d, sqrt_d))
            if ti.abs(q) < 1e-20:
                t0 = -0.5 * b / a
                t1 = t0
            else:
                t0 = q / a
                t1 = c / q
            if t0 > t1:
                temp = t0
                t0 = t1
                t1 = temp
            n = 2
    return n, t0, t1


@ti.func
def _transform_point(m: mat4, p: vec3) -> vec3:
    return vec3(
        m[0, 0] * p.x + m[0, 1] * p.y + m[0, 2] * p.z + m[0, 3],
        m[1, 0] * p.x + m[1, 1] * p.y + m[1, 2] * p.z + m[1, 3],
        m[2, 0] * p.x + m[2, 1] * p.y + m[2, 2] * p.z + m[2, 3],
    )


@ti.func
def _transform_vector(m: mat4, v: vec3) -> vec3:
    return vec3(
        m[0, 0] * v.x + m[0, 1] * v.y + m[0, 2] * v.z,
        m[1, 0] * v.x + m[1, 1] * v.y + m[1, 2] * v.z,
        m[2, 0] * v.x + m[2, 1] * v.y + m[2, 2] * v.z,
    )


# =============================================================================
# Analytic primitives
# =============================================================================


@ti.func
def _hit_sphere(p: vec_params, o: vec3, d: vec3, t_min: ti.f32, t_max: ti.f32) -> LocalHit:
    best = _miss(t_max)
    center = vec3(p[0], p[1], p[2])
    radius = p[3]
    oc = o - center
    n, t0, t1 = _solve_quadratic(d.dot(d), 2.0 * oc.dot(d), oc.dot(oc) - radius * radius)
    if n == 2:
        best = _consider(best, t0, (o + t0 * d - center) / radius, t_min)
        best = _consider(best, t1, (o + t1 * d - center) / radius, t_min)
    return best


@ti.func
def _box_normal(q: vec3, center: vec3, half: vec3) -> vec3:
    """Face normal of the box face nearest to q."""
    rel = (q - center) / half
    ax = ti.abs(rel.x)
    ay = ti.abs(rel.y)
    az = ti.abs(rel.z)
    normal = vec3(0.0, 0.0, 0.0)
    if ax >= ay and ax >= az:
        normal = vec3(ti.select(rel.x < 0.0, -1.0, 1.0), 0.0, 0.0)
    elif ay >= az:
        normal = vec3(0.0, ti.select(rel.y < 0.0, -1.0, 1.0), 0.0)
    else:
        normal = vec3(0.0, 0.0, ti.select(rel.z < 0.0, -1.0, 1.0))
    return normal


@ti.func
def _hit_box(p: vec_params, o: vec3, d: vec3, t_min: ti.f32, t_max: ti.f32) -> LocalHit:
    best = _miss(t_max)
    lo = vec3(p[0], p[1], p[2])
    hi = vec3(p[3], p[4], p[5])
    t_near = -1e30
    t_far = 1e30
    inside = 1
    for axis in ti.static(range(3)):
        if ti.abs(d[axis]) < 1e-12:
            if o[axis] < lo[axis] or o[axis] > hi[axis]:
                inside = 0
        else:
            ta = (lo[axis] - o[axis]) / d[axis]
            tb = (hi[axis] - o[axis]) / d[axis]
            t_near = ti.max(t_near, ti.min(ta, tb))
            t_far = ti.min(t_far, ti.max(ta, tb))
    if inside == 1 and t_near <= t_far:
        center = 0.5 * (lo + hi)
        half = 0.5 * (hi - lo)
        best = _consider(best, t_near, _box_normal(o + t_near * d, center, half), t_min)
        best = _consider(best, t_far, _box_normal(o + t_far * d, center, half), t_min)
    return best


@ti.func
def _hit_rectangle(o: vec3, d: vec3, t_min: ti.f32, t_max: ti.f32) -> LocalHit:
    best = _miss(t_max)
    if ti.abs(d.y) > 1e-12:
        t = -o.y / d.y
        q = o + t * d
        if ti.abs(q.x) <= 1.0 and ti.abs(q.z) <= 1.0:
            best = _consider(best, t, vec3(0.0, 1.0, 0.0), t_min)
    return best


@ti.func
def _hit_cap(
    best: LocalHit, o: vec3, d: vec3, y: ti.f32, radius: ti.f32, normal_y: ti.f32, t_min: ti.f32
) -> LocalHit:
    """Test the disk of the given radius in the plane at height y."""
    result = best
    if ti.abs(d.y) > 1e-12:
        t = (y - o.y) / d.y
        q = o + t * d
        if q.x * q.x + q.z * q.z <= radius * radius:
            result = _consider(best, t, vec3(0.0, normal_y, 0.0), t_min)
    return result


@ti.func
def _cylinder_side(
    best: LocalHit, o: vec3, d: vec3, t: ti.f32, half_h: ti.f32, t_min: ti.f32
) -> LocalHit:
    result = best
    q = o + t * d
    if ti.abs(q.y) <= half_h:
        result = _consider(best, t, vec3(q.x, 0.0, q.z), t_min)
    return result


@ti.func
def _hit_cylinder(p: vec_params, o: vec3, d: vec3, t_min: ti.f32, t_max: ti.f32) -> LocalHit:
    best = _miss(t_max)
    half_h = 0.5 * p[0]
    radius = p[1]
    n, t0, t1 = _solve_quadratic(
        d.x * d.x + d.z * d.z,
        2.0 * (o.x * d.x + o.z * d.z),
        o.x * o.x + o.z * o.z - radius * radius,
    )
    if n > 0:
        best = _cylinder_side(best, o, d, t0, half_h, t_min)
        best = _cylinder_side(best, o, d, t1, half_h, t_min)
    best = _hit_cap(best, o, d, half_h, radius, 1.0, t_min)
    best = _hit_cap(best, o, d, -half_h, radius, -1.0, t_min)
    return best


@ti.func
def _cone_side(
    best: LocalHit, o: vec3, d: vec3, t: ti.f32, half_h: ti.f32, k2: ti.f32, t_min: ti.f32
) -> LocalHit:
    result = best
    q = o + t * d
    if q.y >= -half_h and q.y <= half_h:
        normal = vec3(q.x, k2 * (half_h - q.y), q.z)
        # The apex has no normal
        if normal.norm() > 1e-12:
            result = _consider(best, t, normal, t_min)
    return result


@ti.func
def _hit_cone(p: vec_params, o: vec3, d: vec3, t_min: ti.f32, t_max: ti.f32) -> LocalHit:
    best = _miss(t_max)
    half_h = 0.5 * p[0]
    radius = p[1]
    k2 = (radius / p[0]) * (radius / p[0])
    # s is the distance below the apex
    s0 = half_h - o.y
    ds = -d.y
    n, t0, t1 = _solve_quadratic(
        d.x * d.x + d.z * d.z - k2 * ds * ds,
        2.0 * (o.x * d.x + o.z * d.z - k2 * s0 * ds),
        o.x * o.x + o.z * o.z - k2 * s0 * s0,
    )
    if n > 0:
        best = _cone_side(best, o, d, t0, half_h, k2, t_min)
        best = _cone_side(best, o, d, t1, half_h, k2, t_min)
    best = _hit_cap(best, o, d, -half_h, radius, -1.0, t_min)
    return best



@ti.func
def _hit_triangles(
    start: ti.i32, count: ti.i32, o: vec3, d: vec3, t_min: ti.f32, t_max: ti.f32
) -> LocalHit:
    """Moller-Trumbore against a range of the triangle table."""
    best = _miss(t_max)
    for i in range(start, start + count):
        e1 = tri_v1[i] - tri_v0[i]
        e2 = tri_v2[i] - tri_v0[i]
        pvec = d.cross(e2)
        det = e1.dot(pvec)
        if ti.abs(det) > 1e-12:
            inv_det = 1.0 / det
            tvec = o - tri_v0[i]
            u = tvec.dot(pvec) * inv_det
            qvec = tvec.cross(e1)
            v = d.dot(qvec) * inv_det
            if u >= 0.0 and v >= 0.0 and u + v <= 1.0:
                t = e2.dot(qvec) * inv_det
                best = _consider(best, t, e1.cross(e2), t_min)
    return best


# =============================================================================
# Implicit surfaces
# =============================================================================


@ti.func
def _implicit(kind: ti.i32, p: vec_params, x: vec3) -> ti.f32:
    value = 0.0
    if kind == _TORUS:
        r = p[0]
        big_r = p[1]
        s = x.dot(x) + big_r * big_r - r * r
        value = s * s - 4.0 * big_r * big_r * (x.x * x.x + x.y * x.y)
    elif kind == _ROMAN:
        value = (
            x.x * x.x * x.y * x.y
            + x.y * x.y * x.z * x.z
            + x.z * x.z * x.x * x.x
            - p[0] * x.x * x.y * x.z
        )
    elif kind == _STEINER2:
        value = (
            x.x * x.x * x.z * x.z + x.x * x.x * x.y * x.y
            + x.y * x.y * x.y * x.y
            - x.x * x.y * x.y
        )
    elif kind == _CROSS_CAP2:
        s = p[0] * x.y * x.y - p[1] * x.x * x.x
        value = (x.x * x.x + x.y * x.y) * x.z * x.z - s * x.z + s * s
    return value


@ti.func
def _implicit_gradient(kind: ti.i32, p: vec_params, x: vec3) -> vec3:
    g = vec3(0.0, 0.0, 0.0)
    if kind == _TORUS:
        r = p[0]
        big_r = p[1]
        s = x.dot(x) + big_r * big_r - r * r
        g = vec3(
            4.0 * x.x * s - 8.0 * big_r * big_r * x.x,
            4.0 * x.y * s - 8.0 * big_r * big_r * x.y,
            4.0 * x.z * s,
        )
    elif kind == _ROMAN:
        k = p[0]
        g = vec3(
            2.0 * x.x * x.y * x.y + 2.0 * x.x * x.z * x.z - k * x.y * x.z,
            2.0 * x.y * x.x * x.x + 2.0 * x.y * x.z * x.z - k * x.x * x.z,
            2.0 * x.z * x.y * x.y + 2.0 * x.z * x.x * x.x - k * x.x * x.y,
        )
    elif kind == _STEINER2:
        g = vec3(
            2.0 * x.x * x.z * x.z + 2.0 * x.x * x.y * x.y - x.y * x.y,
            2.0 * x.x * x.x * x.y + 4.0 * x.y * x.y * x.y - 2.0 * x.x * x.y,
            2.0 * x.x * x.x * x.z,
        )
    elif kind == _CROSS_CAP2:
        pp = p[0]
        qq = p[1]
        s = pp * x.y * x.y - qq * x.x * x.x
        g = vec3(
            2.0 * x.x * x.z * x.z + 2.0 * qq * x.x * x.z - 4.0 * qq * x.x * s,
            2.0 * x.y * x.z * x.z - 2.0 * pp * x.y * x.z + 4.0 * pp * x.y * s,
            2.0 * (x.x * x.x + x.y * x.y) * x.z - s,
        )
    return g


@ti.func
def _hit_implicit(
    kind: ti.i32, p: vec_params, o: vec3, d: vec3, t_min: ti.f32, t_max: ti.f32
) -> LocalHit:
    """First sign change of F along the ray inside the bounding sphere.

    params[7] holds the bounding radius.
    """
    best = _miss(t_max)
    radius = p[7] * (1.0 + BOUNDING_MARGIN)
    n, t_enter, t_exit = _solve_quadratic(d.dot(d), 2.0 * o.dot(d), o.dot(o) - radius * radius)
    if n == 2:
        lo = ti.max(t_enter, t_min)
        hi = ti.min(t_exit, t_max)
        if lo < hi:
            step = (hi - lo) / IMPLICIT_SAMPLES
            t_prev = lo
            f_prev = _implicit(kind, p, o + lo * d)
            found = 0
            for s in range(1, IMPLICIT_SAMPLES + 1):
                if found == 0:
                    t_cur = lo + s * step
                    f_cur = _implicit(kind, p, o + t_cur * d)
                    if (f_prev < 0.0) != (f_cur < 0.0):
                        a = t_prev
                        b = t_cur
                        f_a = f_prev
                        for _ in range(BISECTION_STEPS):
                            mid = 0.5 * (a + b)
                            f_mid = _implicit(kind, p, o + mid * d)
                            if (f_a < 0.0) == (f_mid < 0.0):
                                a = mid
                                f_a = f_mid
                            else:
                                b = mid
                        t_root = 0.5 * (a + b)
                        g = _implicit_gradient(kind, p, o + t_root * d)
                        # Singular points (zero gradient) are skipped
                        if g.norm() > 1e-12:
                            best = _consider(best, t_root, g, t_min)
                            found = best.hit
                    t_prev = t_cur
                    f_prev = f_cur
    return best


# =============================================================================
# Scene kernel
# =============================================================================


@ti.func
def _hit_instance(k: ti.i32, o: vec3, d: vec3, t_min: ti.f32, t_max: ti.f32) -> LocalHit:
    """Dispatch on the instance's primitive type."""
    kind = inst_type[k]
    p = inst_params[k]
    rec = _miss(t_max)
    if kind == _SPHERE:
        rec = _hit_sphere(p, o, d, t_min, t_max)
    elif kind == _BOX:
        rec = _hit_box(p, o, d, t_min, t_max)
    elif kind == _RECTANGLE:
        rec = _hit_rectangle(o, d, t_min, t_max)
    elif kind == _DISK:
        rec = _hit_cap(rec, o, d, 0.0, p[0], 1.0, t_min)
    elif kind == _CYLINDER:
        rec = _hit_cylinder(p, o, d, t_min, t_max)
    elif kind == _CONE:
        rec = _hit_cone(p, o, d, t_min, t_max)
    elif kind == _MESH:
        rec = _hit_triangles(inst_tri_start[k], inst_tri_count[k], o, d, t_min, t_max)
    else:
        rec = _hit_implicit(kind, p, o, d, t_min, t_max)
    return rec


@ti.kernel
def _intersect_kernel(
    origins: ti.types.ndarray(),
    directions: ti.types.ndarray(),
    t_min: ti.f32,
    t_max: ti.f32,
    t_out: ti.types.ndarray(),
    normal_out: ti.types.ndarray(),
    instance_out: ti.types.ndarray(),
):
    for i in range(origins.shape[0]):
        o = vec3(origins[i, 0], origins[i, 1], origins[i, 2])
        d = vec3(directions[i, 0], directions[i, 1], directions[i, 2])
        closest_t = t_max
        best_instance = -1
        best_normal = vec3(0.0, 0.0, 0.0)

        for k in range(num_instances[None]):
            inverse = inst_inverse[k]
            rec = _hit_instance(
                k, _transform_point(inverse, o), _transform_vector(inverse, d), t_min, closest_t
            )
            if rec.hit == 1:
                closest_t = rec.t
                best_instance = k
                best_normal = (inst_normal_matrix[k] @ rec.normal).normalized()

        t_out[i] = ti.select(best_instance >= 0, closest_t, -1.0)
        instance_out[i] = best_instance
        for c in ti.static(range(3)):
            normal_out[i, c] = best_normal[c]


# =============================================================================
# Host side
# =============================================================================


def _padded(values: npt.NDArray[np.float64], capacity: int) -> npt.NDArray[np.float32]:
    out = np.zeros((capacity,) + values.shape[1:], dtype=np.float32)
    out[: len(values)] = values
    return out


def load_instances(flat: FlatScene) -> None:
    """Upload a flattened scene into the Taichi fields.

    Raises:
        RuntimeError: If the instance or triangle capacity is exceeded.
    """
    n = len(flat.instances)
    if n > MAX_INSTANCES:
        raise RuntimeError(f"Maximum number of instances ({MAX_INSTANCES}) exceeded")
    if len(flat.triangles) > MAX_TRIANGLES:
        raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")

    inverses = np.array([inst.inverse for inst in flat.instances]).reshape(n, 4, 4)
    inst_inverse.from_numpy(_padded(inverses, MAX_INSTANCES))
    inst_normal_matrix.from_numpy(
        _padded(np.transpose(inverses[:, :3, :3], (0, 2, 1)), MAX_INSTANCES)
    )
    inst_params.from_numpy(_padded(flat.param_table(), MAX_INSTANCES))

    types = np.zeros(MAX_INSTANCES, dtype=np.int32)
    starts = np.zeros(MAX_INSTANCES, dtype=np.int32)
    counts = np.zeros(MAX_INSTANCES, dtype=np.int32)
    for i, inst in enumerate(flat.instances):
        types[i] = int(inst.primitive)
        starts[i] = inst.triangle_start
        counts[i] = inst.triangle_count
    inst_type.from_numpy(types)
    inst_tri_start.from_numpy(starts)
    inst_tri_count.from_numpy(counts)

    if len(flat.triangles):
        tri_v0.from_numpy(_padded(flat.triangles[:, 0], MAX_TRIANGLES))
        tri_v1.from_numpy(_padded(flat.triangles[:, 1], MAX_TRIANGLES))
        tri_v2.from_numpy(_padded(flat.triangles[:, 2], MAX_TRIANGLES))
    num_instances[None] = n


@dataclass
class BatchHits:
    """Results of a batch intersection, one row per ray.

    Attributes:
        t: Ray parameter of the closest hit, inf on a miss.
        normal: Unit outward world normal (zero on a miss).
        instance: Index into the flattened instance list, -1 on a miss.
        material_index: Index into the flattened material list, -1 on a miss.
    """

    t: npt.NDArray[np.float64]
    normal: npt.NDArray[np.float64]
    instance: npt.NDArray[np.int32]
    material_index: npt.NDArray[np.int32]

    @property
    def hit(self) -> npt.NDArray[np.bool_]:
        return np.isfinite(self.t)

    def __len__(self) -> int:
        return len(self.t)


class BatchTracer:
    """Intersect arrays of rays with a flattened scene.

    The scene is flattened at construction; later edits to the scene are
    not seen. Computation happens in single precision.

    Attributes:
        flat: The flattened scene tables.
        config: Tolerances (epsilon and t_max are used).
    """

    def __init__(self, scene: Scene, config: IntersectionConfig | None = None) -> None:
        self.flat = flatten_scene(scene)
        self.config = resolve_config(config if config is not None else scene.config)
        self._upload()

    def _upload(self) -> None:
        global _resident
        load_instances(self.flat)
        _resident = self
        logger.debug(
            "Uploaded %d instances and %d triangles",
            len(self.flat.instances),
            len(self.flat.triangles),
        )

    def intersect(self, origins: npt.ArrayLike, directions: npt.ArrayLike) -> BatchHits:
        """Intersect n rays given as (n, 3) origin and direction arrays.

        Args:
            origins: Ray origins in world space.
            directions: Ray directions; need not be unit length.

        Returns:
            Per-ray closest hits.

        Raises:
            ValueError: If the arrays are not both of shape (n, 3).
        """
        o = np.ascontiguousarray(origins, dtype=np.float32)
        d = np.ascontiguousarray(directions, dtype=np.float32)
        if o.ndim != 2 or o.shape[1] != 3 or o.shape != d.shape:
            raise ValueError(
                f"origins and directions must both have shape (n, 3), got {o.shape} and {d.shape}"
            )
        if _resident is not self:
            self._upload()

        n = len(o)
        t_out = np.zeros(n, dtype=np.float32)
        normal_out = np.zeros((n, 3), dtype=np.float32)
        instance_out = np.full(n, -1, dtype=np.int32)
        if n:
            _intersect_kernel(
                o, d, self.config.epsilon, self.config.t_max, t_out, normal_out, instance_out
            )

        t = t_out.astype(np.float64)
        hit = instance_out >= 0
        t[~hit] = np.inf
        material_index = np.full(n, -1, dtype=np.int32)
        if np.any(hit):
            materials = np.array(
                [inst.material_index for inst in self.flat.instances], dtype=np.int32
            )
            material_index[hit] = materials[instance_out[hit]]
        return BatchHits(
            t=t,
            normal=normal_out.astype(np.float64),
            instance=instance_out,
            material_index=material_index,
        )
