# Tests for the Noisy QPU Engine
#
# Test organization mirrors source structure:
#   - test_state/: Amplitude stores, partition registry, random source
#   - test_primitives/: Gate matrices, gate engine, measurement
#   - test_noise_models/: Kraus channels, noise models, trajectory noise
#   - test_architecture/: Session facade, rank partitions
#   - test_utils/: Math helpers and plots
#
# Running tests:
#   pytest tests/
#   pytest tests/test_noise_models/ -v
#   pytest tests/ -k "ensemble"
