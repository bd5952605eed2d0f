from .supervisor import AcquisitionSupervisor, SupervisorState, run_acquisition

__all__ = ["AcquisitionSupervisor", "SupervisorState", "run_acquisition"]
