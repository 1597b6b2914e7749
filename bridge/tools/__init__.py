"""Tool calls exposed to the assistant.

Read tools answer from the control system or the runtime state. The single mutating
tool (`dp.set`) obtains the runtime state and checks the write policy before anything
reaches the control system.
"""
