from .job_manager import JobManager, LookupRejected, aggregate, iter_batches

__all__ = ['JobManager', 'LookupRejected', 'aggregate', 'iter_batches']
