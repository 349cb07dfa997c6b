"""Pure booking rules: time windows, pricing, vehicle snapshots and the status machine."""
