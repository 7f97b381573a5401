"""yith-arb — web3 infrastructure: keys, signing, ABI, chain access."""
