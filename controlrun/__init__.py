"""
controlrun: compile compliance controls into executable checks, run them,
and report the results.

A control (rule) declares checks. Each check is compiled into an example
group, stamped with the control's identity, registered in declaration order,
and executed by a pluggable runner. Formatters turn the outcomes into text
or structured reports.
"""

__version__ = "0.1.0"
