"""
hdfsgate - guarded access to HDFS for applications.

Exposes the HdfsGate facade together with the configuration manager.
"""

from hdfsgate import Config
from hdfsgate import HdfsGate

__version__ = "0.1.0"

__all__ = ["Config", "HdfsGate", "__version__"]
