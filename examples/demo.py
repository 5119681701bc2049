import vexfft
import numpy as np

engine = vexfft.create_engine('numpy')  # 'pytorch' or 'opencl' to run on an accelerator
queue = engine.create_queue()

impulse = np.zeros(8, dtype=np.complex64)
impulse[0] = 1.0

x = vexfft.from_numpy(queue, impulse, engine=engine)
y = vexfft.empty(queue, 8, engine=engine)

with vexfft.FFT(queue, 8, engine=engine) as fft, \
        vexfft.FFT(queue, 8, vexfft.inverse, engine=engine) as ifft:
    y[:] = fft(x)    # out-of-place
    y[:] = ifft(y)   # in-place, runs after the forward transform
    data = y.to_numpy()

print("Result:", data)

expected = 8 * impulse
np.testing.assert_allclose(data, expected, atol=1e-5)

print("✓ Round trip passed!")
