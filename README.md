# runeaim

Building blocks for aiming at a rotating rune target. The package has three parts: serial framing, detection post-processing, and rotation tracking.

## Modules

### Serial framing

- **`runeaim.packet`**
  - `FixedPacket(capacity)` is a fixed-length frame of the form `0xFF, data..., check byte, 0x0D`.
  - `load_data(fmt, value, index)` and `unload_data(fmt, index)` pack and unpack values with `struct` formats. Formats are little-endian unless the format gives a byte order.
  - Both raise `IndexError` when the value would touch the head, the check byte or the tail.
- **`runeaim.transport`**
  - `Transporter` is the abstract byte-transport interface. Its methods are `open`, `close`, `is_open`, `read`, `write` and `error_message`.
  - `UartTransporter` implements it for a serial port with pyserial. It takes speed, flow control, data bits, stop bits and parity settings. An unsupported setting makes `open()` return `False`, and `error_message()` then explains why.
- **`runeaim.packet_tool`**
  - `FixedPacketTool(transporter, capacity)` sends frames and receives frames.
  - When a read returns a broken frame, the tool joins the pieces back into whole frames.
  - `enable_realtime_send(True)` sends queued packets from a background thread.
  - On a read or write failure the tool reconnects the transport.
  - It is a context manager; `close()` stops the background sender.
  - `check_packet(buffer, capacity)` checks a single frame.

### Detection post-processing

- **`runeaim.rune_types`**
  - `RuneType` and `EnemyColor` are enums.
  - `FeaturePoints` holds the R centre and the four armour corners. It supports `+` and `/` for averaging.
  - `RuneObject` is one detected blade.
- **`runeaim.rune_postprocess`**
  - `letterbox(img, new_shape)` resizes keeping the aspect ratio and pads with grey. It returns the padded image and a 3x3 matrix that maps points back to the source image.
  - `generate_grids_and_stride` lists the anchors.
  - `generate_proposals` decodes a network output array, shaped anchors × 15, into `RuneObject`s.
  - `nms_merge_sorted_bboxes` does non-maximum suppression. It merges near-duplicates of the same type and colour into the kept object.
  - `postprocess` chains decoding, top-k selection, suppression and merging.
  - `Rect` and `bounding_rect` are small integer-rectangle helpers.
- **`runeaim.rune_target`**
  - `build_rune_target(objects, detect_color, ...)` drops detections of other colours.
  - It then sets a common R centre: the one given, or the mean of the remaining detections.
  - Finally it picks the most probable inactivated blade and returns a `RuneTarget`. The target has `is_lost=True` when there is no such blade.
  - The steps are also available on their own: `filter_by_color`, `average_r_center`, `assign_r_center` and `select_target`.

### Rotation tracking

- **`runeaim.curve_fitter`**
  - `CurveFitter` collects `(time, angle)` samples and fits one of two curves with a Cauchy-loss bounded least-squares solver (scipy):
    - the small-rune curve, constant angular velocity (`small_rune_curve`);
    - the big-rune curve, sinusoidal velocity (`big_rune_curve`).
  - Fitting starts at 50 samples. The first fit completes inside `update`; later fits run in the background.
  - With `auto_type_determined = True`, both curves are fitted and the cheaper one sets `motion_type`.
  - `predict(time)` returns the fitted angle.
  - `status_verified()` reports whether a fit is ready.
  - `debug_text()` describes the fitted curve.
- **`runeaim.rune_geometry`**
  - Angle helpers: `normalize_angle`, `normalize_angle_positive` and `shortest_angular_distance`.
  - `normal_angle(points)` gives the blade angle around the R centre.
  - `observed_angle(...)` gives a continuous angle that absorbs 72° blade switches.
  - `yaw_from_rotation` and `continuous_yaw` work with yaw.
  - `distance_in_range` checks that the rune is 4–9 m away.
  - `shooting_range` and `fire_advice` decide whether the gimbal error is small enough to fire.

## Install

```
pip install .
pip install ".[test]"   # with test dependencies
```

## Example: packets over a transport

```python
from runeaim.packet import FixedPacket
from runeaim.packet_tool import FixedPacketTool

packet = FixedPacket(32)
packet.load_data("<i", 10, 10)

with FixedPacketTool(transporter, 32) as tool:   # any Transporter
    tool.send_packet(packet)
    received = tool.recv_packet()                 # None if no valid frame
    if received is not None:
        value = received.unload_data("<i", 10)
```

## Example: fitting rune rotation

```python
from runeaim.curve_fitter import CurveFitter, MotionType

fitter = CurveFitter(MotionType.SMALL)
for t, angle in observations:
    fitter.update(t, angle)
if fitter.status_verified():
    print(fitter.predict(t + 0.3), fitter.debug_text())
```

## What the package does not do

- It has no message layer that maps gimbal or chassis commands onto packets, and none that decodes received packets into robot state. You lay out frames yourself with `FixedPacket.load_data` and `unload_data`.
- It does not run the detection network. `postprocess` expects the network's output array, which you must supply.
- It does not find the R tag in the image.
- It does not solve the rune's 3D pose, filter it, or compute gimbal commands. `rune_geometry` provides only the angle and shooting-window helpers.
- It has no command-line program and no long-running service.

## Tests

```
pytest
```