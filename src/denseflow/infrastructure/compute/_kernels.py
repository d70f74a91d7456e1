"""
WGSL compute kernels.

Two families share one 2-D dispatch layout:

- optimizer kernels read `UpdateParams` (momentum, learning rate, element
  count) and touch element `i` of each buffer only;
- layer kernels read `ShapeParams` (batch rows, input width, output width)
  and compute one output element per thread from row-major buffers.

The flattened thread index is `gid.x + gid.y * row_stride`, which lets
buffers longer than `65535 * WORKGROUP_SIZE` elements be covered without
exceeding per-dimension dispatch limits. Threads past the element count exit
early.

All kernels operate on `f32` storage; WGSL has no portable `f64` type.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

WORKGROUP_SIZE = 256

UPDATE_UNIFORM = "update"
SHAPE_UNIFORM = "shape"

_UPDATE_PARAMS = """
struct UpdateParams {
    momentum_gamma: f32,
    learning_rate: f32,
    size: u32,
    row_stride: u32,
}

@group(0) @binding(0) var<uniform> params: UpdateParams;
"""

_SHAPE_PARAMS = """
struct ShapeParams {
    rows: u32,
    inputs: u32,
    outputs: u32,
    row_stride: u32,
}

@group(0) @binding(0) var<uniform> params: ShapeParams;
"""


@dataclass(frozen=True)
class Kernel:
    """
    A named compute kernel.

    Attributes
    ----------
    name : str
        Registry key, also used in dispatch error messages.
    source : str
        Complete WGSL module with a `main` entry point.
    storage_bindings : int
        Number of storage buffers bound after the uniform block (bindings
        `1..storage_bindings`).
    uniform : str
        Layout of the uniform block, `UPDATE_UNIFORM` or `SHAPE_UNIFORM`.
    """

    name: str
    source: str
    storage_bindings: int
    uniform: str = UPDATE_UNIFORM


# parameters[i] -= last_update[i] * gamma
OPTIMIZE_PARAMETERS = Kernel(
    name="optimize_parameters",
    storage_bindings=2,
    source=_UPDATE_PARAMS
    + """
@group(0) @binding(1) var<storage, read_write> parameters: array<f32>;
@group(0) @binding(2) var<storage, read> last_update: array<f32>;

@compute @workgroup_size(256)
fn main(@builtin(global_invocation_id) gid: vec3<u32>) {
    let i = gid.x + gid.y * params.row_stride;
    if (i >= params.size) {
        return;
    }
    parameters[i] = parameters[i] - last_update[i] * params.momentum_gamma;
}
""",
)

# update[i] = gradient[i] * lr + last_update[i] * gamma; last_update[i] = update[i]
COMPUTE_UPDATE_VECTOR = Kernel(
    name="compute_update_vector",
    storage_bindings=3,
    source=_UPDATE_PARAMS
    + """
@group(0) @binding(1) var<storage, read> gradient: array<f32>;
@group(0) @binding(2) var<storage, read_write> last_update: array<f32>;
@group(0) @binding(3) var<storage, read_write> update_vector: array<f32>;

@compute @workgroup_size(256)
fn main(@builtin(global_invocation_id) gid: vec3<u32>) {
    let i = gid.x + gid.y * params.row_stride;
    if (i >= params.size) {
        return;
    }
    let value = gradient[i] * params.learning_rate
        + last_update[i] * params.momentum_gamma;
    update_vector[i] = value;
    last_update[i] = value;
}
""",
)

# update[i] = gradient[i] * lr
COMPUTE_PLAIN_UPDATE = Kernel(
    name="compute_plain_update",
    storage_bindings=2,
    source=_UPDATE_PARAMS
    + """
@group(0) @binding(1) var<storage, read> gradient: array<f32>;
@group(0) @binding(2) var<storage, read_write> update_vector: array<f32>;

@compute @workgroup_size(256)
fn main(@builtin(global_invocation_id) gid: vec3<u32>) {
    let i = gid.x + gid.y * params.row_stride;
    if (i >= params.size) {
        return;
    }
    update_vector[i] = gradient[i] * params.learning_rate;
}
""",
)

# outputs[r, c] = biases[c] + sum_k inputs[r, k] * weights[k, c]
DENSE_PROPAGATE = Kernel(
    name="dense_propagate",
    storage_bindings=4,
    uniform=SHAPE_UNIFORM,
    source=_SHAPE_PARAMS
    + """
@group(0) @binding(1) var<storage, read> inputs: array<f32>;
@group(0) @binding(2) var<storage, read> weights: array<f32>;
@group(0) @binding(3) var<storage, read> biases: array<f32>;
@group(0) @binding(4) var<storage, read_write> outputs: array<f32>;

@compute @workgroup_size(256)
fn main(@builtin(global_invocation_id) gid: vec3<u32>) {
    let i = gid.x + gid.y * params.row_stride;
    if (i >= params.rows * params.outputs) {
        return;
    }
    let r = i / params.outputs;
    let c = i % params.outputs;
    var acc = biases[c];
    for (var k = 0u; k < params.inputs; k = k + 1u) {
        acc = acc + inputs[r * params.inputs + k] * weights[k * params.outputs + c];
    }
    outputs[i] = acc;
}
""",
)

# input_gradient[r, k] = sum_c gradient[r, c] * weights[k, c]
DENSE_INPUT_GRADIENT = Kernel(
    name="dense_input_gradient",
    storage_bindings=3,
    uniform=SHAPE_UNIFORM,
    source=_SHAPE_PARAMS
    + """
@group(0) @binding(1) var<storage, read> gradient: array<f32>;
@group(0) @binding(2) var<storage, read> weights: array<f32>;
@group(0) @binding(3) var<storage, read_write> input_gradient: array<f32>;

@compute @workgroup_size(256)
fn main(@builtin(global_invocation_id) gid: vec3<u32>) {
    let i = gid.x + gid.y * params.row_stride;
    if (i >= params.rows * params.inputs) {
        return;
    }
    let r = i / params.inputs;
    let k = i % params.inputs;
    var acc = 0.0;
    for (var c = 0u; c < params.outputs; c = c + 1u) {
        acc = acc + gradient[r * params.outputs + c] * weights[k * params.outputs + c];
    }
    input_gradient[i] = acc;
}
""",
)

# weights_gradient[k, c] = sum_r inputs[r, k] * gradient[r, c] / rows
DENSE_WEIGHTS_GRADIENT = Kernel(
    name="dense_weights_gradient",
    storage_bindings=3,
    uniform=SHAPE_UNIFORM,
    source=_SHAPE_PARAMS
    + """
@group(0) @binding(1) var<storage, read> inputs: array<f32>;
@group(0) @binding(2) var<storage, read> gradient: array<f32>;
@group(0) @binding(3) var<storage, read_write> weights_gradient: array<f32>;

@compute @workgroup_size(256)
fn main(@builtin(global_invocation_id) gid: vec3<u32>) {
    let i = gid.x + gid.y * params.row_stride;
    if (i >= params.inputs * params.outputs) {
        return;
    }
    let k = i / params.outputs;
    let c = i % params.outputs;
    var acc = 0.0;
    for (var r = 0u; r < params.rows; r = r + 1u) {
        acc = acc + inputs[r * params.inputs + k] * gradient[r * params.outputs + c];
    }
    weights_gradient[i] = acc / f32(params.rows);
}
""",
)

# biases_gradient[c] = sum_r gradient[r, c] / rows
DENSE_BIASES_GRADIENT = Kernel(
    name="dense_biases_gradient",
    storage_bindings=2,
    uniform=SHAPE_UNIFORM,
    source=_SHAPE_PARAMS
    + """
@group(0) @binding(1) var<storage, read> gradient: array<f32>;
@group(0) @binding(2) var<storage, read_write> biases_gradient: array<f32>;

@compute @workgroup_size(256)
fn main(@builtin(global_invocation_id) gid: vec3<u32>) {
    let c = gid.x + gid.y * params.row_stride;
    if (c >= params.outputs) {
        return;
    }
    var acc = 0.0;
    for (var r = 0u; r < params.rows; r = r + 1u) {
        acc = acc + gradient[r * params.outputs + c];
    }
    biases_gradient[c] = acc / f32(params.rows);
}
""",
)

# outputs[i] = tanh(inputs[i]); inputs are clamped where tanh is already +-1 in f32
TANH_PROPAGATE = Kernel(
    name="tanh_propagate",
    storage_bindings=2,
    uniform=SHAPE_UNIFORM,
    source=_SHAPE_PARAMS
    + """
@group(0) @binding(1) var<storage, read> inputs: array<f32>;
@group(0) @binding(2) var<storage, read_write> outputs: array<f32>;

@compute @workgroup_size(256)
fn main(@builtin(global_invocation_id) gid: vec3<u32>) {
    let i = gid.x + gid.y * params.row_stride;
    if (i >= params.rows * params.outputs) {
        return;
    }
    outputs[i] = tanh(clamp(inputs[i], -20.0, 20.0));
}
""",
)

# input_gradient[i] = gradient[i] * (1 - outputs[i]^2)
TANH_BACK_PROPAGATE = Kernel(
    name="tanh_back_propagate",
    storage_bindings=3,
    uniform=SHAPE_UNIFORM,
    source=_SHAPE_PARAMS
    + """
@group(0) @binding(1) var<storage, read> outputs: array<f32>;
@group(0) @binding(2) var<storage, read> gradient: array<f32>;
@group(0) @binding(3) var<storage, read_write> input_gradient: array<f32>;

@compute @workgroup_size(256)
fn main(@builtin(global_invocation_id) gid: vec3<u32>) {
    let i = gid.x + gid.y * params.row_stride;
    if (i >= params.rows * params.outputs) {
        return;
    }
    let y = outputs[i];
    input_gradient[i] = gradient[i] * (1.0 - y * y);
}
""",
)

KERNELS: Dict[str, Kernel] = {
    k.name: k
    for k in (
        OPTIMIZE_PARAMETERS,
        COMPUTE_UPDATE_VECTOR,
        COMPUTE_PLAIN_UPDATE,
        DENSE_PROPAGATE,
        DENSE_INPUT_GRADIENT,
        DENSE_WEIGHTS_GRADIENT,
        DENSE_BIASES_GRADIENT,
        TANH_PROPAGATE,
        TANH_BACK_PROPAGATE,
    )
}
