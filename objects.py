#!/usr/bin/python
import math
import numpy as np

### charge written into every digi cluster, the per-digi adc is not propagated
CLUSTER_CHARGE = 255


class DigitHit:
    def __init__(self,row,column,charge=0,overthreshold=False,position=None):
        self.row           = row           ### 0-indexed on the element
        self.column        = column
        self.charge        = charge        ### adc (pixel digis)
        self.overthreshold = overthreshold ### over-threshold bit (strip digis)
        self.position      = position      ### global (x,y,z) in cm when the host supplies it
    def __eq__(self,other):
        if(not isinstance(other,DigitHit)): return NotImplemented
        return ((self.row,self.column,self.charge,self.overthreshold)==(other.row,other.column,other.charge,other.overthreshold))
    def __str__(self):
        return f"DigitHit: row={self.row}, column={self.column}, charge={self.charge}, overthreshold={self.overthreshold}"


class DigitCluster:
    def __init__(self,row,column):
        self.position = row+1
        self.column   = column
        self.width    = 1
        self.charge   = CLUSTER_CHARGE
    def merge(self,row):
        ### running mean, truncated at every step
        self.width += 1
        self.position = (self.position+row+1)//self.width
    def __str__(self):
        return f"DigitCluster: position={self.position}, column={self.column}, width={self.width}, charge={self.charge}"


class TriggerLevel:
    """
    One step of a trigger path.

    Attributes:
        name         : name used for the histograms
        filter       : label of the filter module checked for pass/fail
        title        : title shown on the plots and in the report
        filter_index : position of the filter inside its own path
    """
    def __init__(self,name,filter="",title="",filter_index=0):
        self.name         = name
        self.filter       = filter
        self.title        = title
        self.filter_index = filter_index
    @property
    def label(self):
        return self.title if(self.title) else self.name
    def __str__(self):
        return f"TriggerLevel: name={self.name}, filter={self.filter}, index={self.filter_index}"


class Jet:
    def __init__(self,et,eta,phi):
        self.et  = et
        self.eta = eta
        self.phi = phi
    def __str__(self):
        return f"Jet: et={self.et}, eta={self.eta}, phi={self.phi}"


class Vertex:
    def __init__(self,x,y,z):
        self.x = x
        self.y = y
        self.z = z


class TriggerResult:
    """
    Outcome of one trigger path in one event, with the event content the
    jet-level plots need: the jets of each level (keyed by level name),
    generator partons as (Jet, flavour), offline b-tags as
    (Jet, discriminator) and the primary vertex.
    """
    def __init__(self,accepted,index,wasrun=True,jets=None,partons=None,tags=None,vertex=None):
        self.accepted = accepted
        self.index    = index
        self.wasrun   = wasrun
        self.jets     = jets if(jets is not None) else {}
        self.partons  = partons if(partons is not None) else []
        self.tags     = tags if(tags is not None) else []
        self.vertex   = vertex
    def __str__(self):
        return f"TriggerResult: accepted={self.accepted}, index={self.index}, wasrun={self.wasrun}"


class DetElement:
    def __init__(self,rawid,layer,nrows,ncolumns,ring=0,center=None):
        self.rawid    = rawid
        self.layer    = layer
        self.ring     = ring
        self.nrows    = nrows
        self.ncolumns = ncolumns
        self.center   = center ### (x,y,z) of the element center in cm, supplied by the geometry
    @property
    def nchannels(self):
        return self.nrows*self.ncolumns
    @property
    def r(self):
        if(self.center is None): return None
        return math.hypot(self.center[0],self.center[1])
    @property
    def eta(self):
        if(self.center is None): return None
        x,y,z = self.center
        theta = np.arctan2(math.hypot(x,y),z)
        return -np.log(np.tan(theta/2.))
    def __str__(self):
        return f"DetElement: rawid={self.rawid}, layer={self.layer}, ring={self.ring}, rows={self.nrows}, columns={self.ncolumns}"


#############################################
### muon chamber records

class SimHit:
    def __init__(self,chamber,layer,trackid=0,x=0.,y=0.,theta=0.,phi=0.):
        self.chamber = chamber ### (endcap,station,ring,chamber)
        self.layer   = layer
        self.trackid = trackid
        self.x       = x
        self.y       = y
        self.theta   = theta ### direction of the momentum at entry
        self.phi     = phi
    def __str__(self):
        return f"SimHit: chamber={self.chamber}, layer={self.layer}, track={self.trackid}"


class RecHit:
    def __init__(self,chamber,layer):
        self.chamber = chamber
        self.layer   = layer


class Segment:
    def __init__(self,chamber,nrechits,chi2,x=0.,y=0.,theta=0.,phi=0.):
        self.chamber  = chamber
        self.nrechits = nrechits
        self.chi2     = chi2
        self.x        = x
        self.y        = y
        self.theta    = theta ### local direction
        self.phi      = phi
    @property
    def chi2ndof(self):
        ndof = 2*self.nrechits-4
        return self.chi2/ndof if(ndof>0) else 99999
    def __str__(self):
        return f"Segment: chamber={self.chamber}, nrechits={self.nrechits}, chi2={self.chi2}"


class SimTrack:
    def __init__(self,pdgid,pt,eta):
        self.pdgid = pdgid
        self.pt    = pt
        self.eta   = eta


class Chamber:
    def __init__(self,typename,first_layer=1,last_layer=6):
        self.typename    = typename    ### e.g. "ME1/b"
        self.first_layer = first_layer ### layer closest to the interaction point
        self.last_layer  = last_layer
