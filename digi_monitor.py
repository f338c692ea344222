#!/usr/bin/python
import os
import math
import numpy as np

import objects
from objects import *
import clusters
from clusters import *


#############################################
### layer naming and booking rules

def get_histo_id(layer,ring,pixel):
    if(layer<0): return ""
    if(layer<100): return f"Barrel/Layer{layer}"
    side = layer//100
    disc = layer-side*100
    if(pixel): discname = "FPIX_1" if(disc<9) else "FPIX_2"
    else:      discname = "TEDD_1" if(disc<3) else "TEDD_2"
    return f"EndCap_Side{side}/{discname}/Ring{ring}"


def has_ptype_sensors(layer,ring):
    ### endcap: P-type sensors only up to ring 10 on discs 1,2 and up to ring 7 on discs 3,4,5
    idisc = 0
    if(layer>100):
        side  = layer//100
        idisc = layer-side*100
        idisc = 12 if(idisc<3) else 345
    disc12  = (idisc==12 and ring<=10)
    disc345 = (idisc==345 and ring<=7)
    return (layer<4 or (layer>6 and (disc12 or disc345)))


def is_on(switches,name):
    ### histograms without an explicit switch are booked
    if(name not in switches): return True
    return bool(switches[name].get("switch",1))


def layer_histo_names(pixel,layer,ring,cluster_flag,switches=None):
    if(switches is None): switches = {}
    names = []
    if(is_on(switches,"NumberOfDigisPerDetH")): names.append("NumberOfDigisPerDet")
    if(pixel or has_ptype_sensors(layer,ring)):
        if(is_on(switches,"DigiOccupancyPH")):
            names.append("DigiOccupancyP")
            if(is_on(switches,"EtaH")): names.append("DigiOccupancyVsEtaP")
        if(is_on(switches,"PositionOfDigisPH")): names.append("PositionOfDigisP")
        if(cluster_flag and is_on(switches,"ClusterPositionPH")): names.append("ClusterPositionP")
    if(pixel and is_on(switches,"ChargeXYMapH")): names.append("ChargeXYMap")
    if(is_on(switches,"TotalNumberOfDigisPerLayerH")): names.append("TotalNumberOfDigisPerLayer")
    if(is_on(switches,"NumberOfHitDetsPerLayerH")):    names.append("NumberOfHitDetectorsPerLayer")
    if(cluster_flag):
        if(is_on(switches,"NumberOfClustersPerDetH")): names.append("NumberOfClustersPerDet")
        if(is_on(switches,"ClusterWidthH")):           names.append("ClusterWidth")
    if(not pixel):
        if(is_on(switches,"DigiOccupancySH")):
            names.append("DigiOccupancyS")
            if(is_on(switches,"EtaH")): names.append("DigiOccupancyVsEtaS")
        names.append("FractionOfOverThresholdDigis")
        if(is_on(switches,"NumberOfDigisPerDetH") and is_on(switches,"EtaH")): names.append("FractionOfOverThresholdDigisVsEta")
        if(cluster_flag and is_on(switches,"ClusterPositionSH")): names.append("ClusterPositionS")
        if(is_on(switches,"PositionOfDigisSH")): names.append("PositionOfDigisS")
    else:
        if(is_on(switches,"DigiChargeH")):
            names.append("ChargeOfDigis")
            if(cluster_flag and is_on(switches,"ClusterWidthH")): names.append("ChargeOfDigisVsWidth")
    return names


def global_histo_names(switches=None):
    if(switches is None): switches = {}
    names = []
    xy  = is_on(switches,"XYPositionMapH")
    rz  = is_on(switches,"RZPositionMapH")
    occ = is_on(switches,"DigiOccupancyPH")
    if(xy): names.append("DigiXPosVsYPos")
    if(rz): names.append("DigiRPosVsZPos")
    if(xy and occ): names.append("OccupancyInXY")
    if(rz and occ): names.append("OccupancyInRZ")
    return names


#############################################
### per-layer monitor elements

class LayerMEs:
    def __init__(self,key,histos=None):
        self.key    = key
        self.histos = histos if(histos is not None) else {}
        self.nDigiPerLayer    = 0
        self.nHitDetsPerLayer = 0
    def has(self,name):
        return (self.histos.get(name) is not None)
    def fill(self,name,*args):
        h = self.histos.get(name)
        if(h is not None): h.Fill(*args)
    def end_event(self):
        self.fill("TotalNumberOfDigisPerLayer",self.nDigiPerLayer)
        self.fill("NumberOfHitDetectorsPerLayer",self.nHitDetsPerLayer)
        self.nDigiPerLayer    = 0
        self.nHitDetsPerLayer = 0


#############################################
### cluster reporting policies

class ClusterReportingPolicy:
    pixel = False
    count_empty_elements = False ### count hit elements before the zero-channel check
    def histo_id(self,element):
        return get_histo_id(element.layer,element.ring,self.pixel)
    def fill_position(self,fill_global,digi):
        ### global digi position, cm -> mm
        if(digi.position is None): return
        x,y,z = digi.position
        fill_global("DigiXPosVsYPos",x*10.,y*10.)
        fill_global("DigiRPosVsZPos",z*10.,math.hypot(x,y)*10.)
    def fill_digi(self,mes,element,digi):
        pass
    def fill_clusters(self,mes,digi_clusters):
        mes.fill("NumberOfClustersPerDet",len(digi_clusters))
        for cls in digi_clusters:
            mes.fill("ClusterWidth",cls.width)
            self.fill_cluster(mes,cls)
            mes.fill("ClusterPositionP",cls.position,cls.column+1)
    def fill_cluster(self,mes,cls):
        pass
    def fill_occupancy(self,mes,element,occupancy,frac_ot):
        pass


class PixelElementPolicy(ClusterReportingPolicy):
    """Inner tracker pixel modules: charge-aware digi and cluster plots."""
    pixel = True
    def fill_digi(self,mes,element,digi):
        mes.fill("ChargeXYMap",digi.column,digi.row,digi.charge)
        mes.fill("PositionOfDigisP",digi.row+1,digi.column+1)
        mes.fill("ChargeOfDigis",digi.charge)
    def fill_cluster(self,mes,cls):
        mes.fill("ChargeOfDigisVsWidth",cls.charge,cls.width)
    def fill_occupancy(self,mes,element,occupancy,frac_ot):
        eta = element.eta
        if(eta is not None): mes.fill("DigiOccupancyVsEtaP",eta,occupancy)
        mes.fill("DigiOccupancyP",occupancy)


class StripElementPolicy(ClusterReportingPolicy):
    """Outer tracker modules: macro-pixel (P) and strip (S, at most 2 columns) sensors."""
    count_empty_elements = True
    pixel = False
    def fill_digi(self,mes,element,digi):
        if(element.ncolumns>2):  mes.fill("PositionOfDigisP",digi.row+1,digi.column+1)
        if(element.ncolumns<=2): mes.fill("PositionOfDigisS",digi.row+1,digi.column+1)
    def fill_cluster(self,mes,cls):
        if(cls.column<=2): mes.fill("ClusterPositionS",cls.position,cls.column+1)
    def fill_occupancy(self,mes,element,occupancy,frac_ot):
        if(element.ncolumns<=2): mes.fill("FractionOfOverThresholdDigis",frac_ot)
        eta = element.eta
        if(element.ncolumns>2):
            mes.fill("DigiOccupancyP",occupancy)
            if(eta is not None): mes.fill("DigiOccupancyVsEtaP",eta,occupancy)
        else:
            mes.fill("DigiOccupancyS",occupancy)
            if(eta is not None):
                mes.fill("DigiOccupancyVsEtaS",eta,occupancy)
                mes.fill("FractionOfOverThresholdDigisVsEta",eta,frac_ot)


def make_policy(pixel):
    return PixelElementPolicy() if(pixel) else StripElementPolicy()


#############################################
### the monitor, one per run

class DigiMonitor:
    def __init__(self,policy,layer_mes,global_mes=None,cluster_flag=True,verbose=0):
        self.policy       = policy
        self.layer_mes    = layer_mes ### key -> LayerMEs
        self.global_mes   = global_mes if(global_mes is not None) else {}
        self.cluster_flag = cluster_flag
        self.verbose      = verbose
        self.nevents      = 0

    def fill_global(self,name,*args):
        h = self.global_mes.get(name)
        if(h is not None): h.Fill(*args)

    def analyze_element(self,element,digis):
        if(element.layer<0): return None
        key = self.policy.histo_id(element)
        if(key not in self.layer_mes): return None
        mes = self.layer_mes[key]
        if(self.policy.count_empty_elements): mes.nHitDetsPerLayer += 1
        if(element.nchannels==0): return None
        if(not self.policy.count_empty_elements): mes.nHitDetsPerLayer += 1
        if(self.verbose>2): print(f" Det Id = {element.rawid}")

        nDigi = 0
        frac_ot = 0.
        for digi in digis:
            nDigi += 1
            if(digi.overthreshold): frac_ot += 1
            self.policy.fill_position(self.fill_global,digi)
            self.policy.fill_digi(mes,element,digi)
        digi_clusters = GetDigiClusters(digis) if(self.cluster_flag) else []

        mes.fill("NumberOfDigisPerDet",nDigi)
        if(self.cluster_flag): self.policy.fill_clusters(mes,digi_clusters)
        mes.nDigiPerLayer += nDigi
        if(nDigi>0): frac_ot /= nDigi

        occupancy = nDigi*1.0/element.nchannels
        if(element.center is not None):
            x,y,z = element.center
            self.fill_global("OccupancyInXY",x*10.,y*10.,occupancy)
            self.fill_global("OccupancyInRZ",z*10.,math.hypot(x,y)*10.,occupancy)
        self.policy.fill_occupancy(mes,element,occupancy,frac_ot)
        return digi_clusters

    def analyze(self,event):
        self.nevents += 1
        event_clusters = {}
        for element,digis in event:
            digis = list(digis)
            digi_clusters = self.analyze_element(element,digis)
            if(digi_clusters is not None): event_clusters.update( {element.rawid:digi_clusters} )
        ### per-layer totals after the loop over all elements
        for key,mes in self.layer_mes.items(): mes.end_event()
        return event_clusters
