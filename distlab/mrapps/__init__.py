"""MapReduce applications: each module provides map_fn and reduce_fn."""