#!/usr/bin/python
import os
import math
import numpy as np

import objects
from objects import *


#############################################
### 1D adjacent-run clustering along the rows
def is_adjacent(digi,row_last,col_last):
    if(row_last is None): return False
    return (abs(digi.row-row_last)==1 and digi.column==col_last)


def GetDigiClusters(digis):
    ### digis come in arrival order for one detector element, not sorted by row
    clusters = []
    row_last = None
    col_last = None
    for digi in digis:
        if(not is_adjacent(digi,row_last,col_last)):
            clusters.append( DigitCluster(digi.row,digi.column) )
        else:
            clusters[-1].merge(digi.row)
        row_last = digi.row
        col_last = digi.column
    return clusters
