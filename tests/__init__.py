"""Test package for the visual-search-circle trial.

Core tests drive the trial with a fake millisecond clock, the frame-polled
scheduler and the keyboard listener; no window is opened. The smoke test runs
the pygame host with SDL's dummy video driver. Run ``pytest`` from the project
root.
"""
