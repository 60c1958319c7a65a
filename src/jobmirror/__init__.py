"""Mirror of the alljobs catalog: sync engine, local store and read queries."""
