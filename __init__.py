"""
VM Pilot

Drives a virtual machine console from outside the VM:
- Controller: turns operator goals into commands (optionally via a vision model)
- Host: watches the command mailbox and replays commands as input events

Architecture:
1. Command Grammar (shared): click/rightclick/type/key/cmd literals
2. Mailbox Channel (shared): single-slot file hand-off between processes
3. Input Injection (host): timed press/release events on the VM view
4. Vision-Plan Loop (controller): screenshot + model -> paced command sends
"""

__version__ = "1.0.0"
