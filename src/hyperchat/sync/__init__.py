from hyperchat.sync.synchronizer import SessionSynchronizer
from hyperchat.sync.writer import PersistenceWriter, WriteJob

__all__ = ["PersistenceWriter", "SessionSynchronizer", "WriteJob"]
