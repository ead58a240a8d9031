"""collector package: polls HDFS for HBase table sizes."""

__version__ = "0.1.0"
