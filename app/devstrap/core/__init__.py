"""Core provisioning engine: manifest store, probe, planner, executor, reporter."""
